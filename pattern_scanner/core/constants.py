"""Timeframe constants shared by validation, detection, scoring and backtesting.

Timeframes are the plain strings used by market data collaborators
(``1m``, ``5m``, ``15m``, ``30m``, ``1h``, ``4h``, ``1d``, ``1w``, ``1mo``).
"""
from enum import Enum

from pattern_scanner.core.exceptions import InvalidTimeframeError

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS
WEEK_MS = 7 * DAY_MS


class Timeframe(str, Enum):
    """Supported candle timeframes."""

    ONE_MINUTE = "1m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    THIRTY_MINUTES = "30m"
    ONE_HOUR = "1h"
    FOUR_HOURS = "4h"
    ONE_DAY = "1d"
    ONE_WEEK = "1w"
    ONE_MONTH = "1mo"


TIMEFRAME_INTERVAL_MS: dict[str, int] = {
    Timeframe.ONE_MINUTE.value: MINUTE_MS,
    Timeframe.FIVE_MINUTES.value: 5 * MINUTE_MS,
    Timeframe.FIFTEEN_MINUTES.value: 15 * MINUTE_MS,
    Timeframe.THIRTY_MINUTES.value: 30 * MINUTE_MS,
    Timeframe.ONE_HOUR.value: HOUR_MS,
    Timeframe.FOUR_HOURS.value: 4 * HOUR_MS,
    Timeframe.ONE_DAY.value: DAY_MS,
    Timeframe.ONE_WEEK.value: WEEK_MS,
    Timeframe.ONE_MONTH.value: 30 * DAY_MS,
}

# Timeframes whose candles are whole sessions; gaps over weekends and
# holidays are expected for these.
SESSION_TIMEFRAMES = frozenset(
    {Timeframe.ONE_DAY.value, Timeframe.ONE_WEEK.value, Timeframe.ONE_MONTH.value}
)

INTRADAY_TIMEFRAMES = frozenset(
    {
        Timeframe.ONE_MINUTE.value,
        Timeframe.FIVE_MINUTES.value,
        Timeframe.FIFTEEN_MINUTES.value,
        Timeframe.THIRTY_MINUTES.value,
        Timeframe.ONE_HOUR.value,
    }
)

# Timeframes accepted by batch backtest parameters
BACKTEST_TIMEFRAMES = frozenset(
    tf.value for tf in Timeframe if tf is not Timeframe.ONE_MONTH
)

# Adjacent lower timeframe used for multi-timeframe confirmation
LOWER_TIMEFRAME: dict[str, str] = {
    Timeframe.ONE_WEEK.value: Timeframe.ONE_DAY.value,
    Timeframe.ONE_DAY.value: Timeframe.FOUR_HOURS.value,
    Timeframe.FOUR_HOURS.value: Timeframe.ONE_HOUR.value,
    Timeframe.ONE_HOUR.value: Timeframe.THIRTY_MINUTES.value,
    Timeframe.THIRTY_MINUTES.value: Timeframe.FIFTEEN_MINUTES.value,
    Timeframe.FIFTEEN_MINUTES.value: Timeframe.FIVE_MINUTES.value,
    Timeframe.FIVE_MINUTES.value: Timeframe.ONE_MINUTE.value,
}

EXPECTED_CANDLES_TO_BREAKOUT: dict[str, int] = {
    Timeframe.ONE_HOUR.value: 5,
    Timeframe.FOUR_HOURS.value: 4,
    Timeframe.ONE_DAY.value: 3,
}
DEFAULT_EXPECTED_CANDLES_TO_BREAKOUT = 5


def interval_ms(timeframe: str) -> int:
    """Get the expected spacing between consecutive candles.

    Args:
        timeframe: Timeframe string (e.g., "1h", "1d")

    Returns:
        Interval in milliseconds

    Raises:
        InvalidTimeframeError: If the timeframe is not supported
    """
    try:
        return TIMEFRAME_INTERVAL_MS[timeframe]
    except KeyError:
        raise InvalidTimeframeError(f"Unsupported timeframe '{timeframe}'") from None


def is_session_timeframe(timeframe: str) -> bool:
    """Check whether candles of this timeframe span whole trading sessions."""
    return timeframe in SESSION_TIMEFRAMES


def lower_timeframe(timeframe: str) -> str | None:
    """Get the adjacent lower timeframe used for confirmation, if any."""
    return LOWER_TIMEFRAME.get(timeframe)
