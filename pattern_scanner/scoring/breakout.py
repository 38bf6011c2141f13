"""Expected breakout timing per timeframe."""
from datetime import datetime, timedelta

from pattern_scanner.core.constants import DEFAULT_EXPECTED_CANDLES_TO_BREAKOUT
from pattern_scanner.core.constants import EXPECTED_CANDLES_TO_BREAKOUT
from pattern_scanner.core.constants import interval_ms


def expected_candles_to_breakout(timeframe: str) -> int:
    """Typical number of candles between detection and breakout."""
    return EXPECTED_CANDLES_TO_BREAKOUT.get(
        timeframe, DEFAULT_EXPECTED_CANDLES_TO_BREAKOUT
    )


def expected_breakout_time(timeframe: str, now: datetime) -> datetime:
    """Projected breakout time counted in whole candles from ``now``.

    Raises:
        InvalidTimeframeError: If the timeframe is not supported
    """
    candles = expected_candles_to_breakout(timeframe)
    return now + timedelta(milliseconds=interval_ms(timeframe) * candles)
