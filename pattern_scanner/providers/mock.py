"""Mock candle provider for testing.

Generates fake but realistic-looking candles without hitting external APIs.
Useful for unit tests, async scanner tests, and development environments.
"""
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from pattern_scanner.core.constants import TIMEFRAME_INTERVAL_MS, interval_ms
from pattern_scanner.core.exceptions import DataProviderError
from pattern_scanner.models.candle import Candle
from pattern_scanner.providers.base import CandleProviderInterface

logger = logging.getLogger(__name__)


def _to_ms(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


class MockCandleProvider(CandleProviderInterface):
    """
    Mock candle provider for testing.

    Serves scripted series when one is registered for a (symbol, timeframe)
    pair and otherwise generates a gently rising series. Symbols listed in
    ``failing_symbols`` raise DataProviderError to exercise error handling.
    """

    def __init__(
        self,
        series: dict[tuple[str, str], Sequence[Candle]] | None = None,
        failing_symbols: set[str] | None = None,
    ) -> None:
        self._series = dict(series or {})
        self._failing_symbols = set(failing_symbols or ())
        self.calls: list[tuple[str, str]] = []

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def supported_timeframes(self) -> list[str]:
        return list(TIMEFRAME_INTERVAL_MS)

    def add_series(self, symbol: str, timeframe: str, candles: Sequence[Candle]) -> None:
        """Register a scripted series."""
        self._series[(symbol, timeframe)] = list(candles)

    async def fetch_candles(
        self,
        symbol: str,
        timeframe: str,
        start: datetime,
        end: datetime,
    ) -> list[Candle]:
        """Return the scripted series or generate fake candles."""
        self.calls.append((symbol, timeframe))

        if symbol in self._failing_symbols:
            raise DataProviderError(f"Mock provider failure for {symbol}")

        if (symbol, timeframe) in self._series:
            return list(self._series[(symbol, timeframe)])

        step = interval_ms(timeframe)
        current = _to_ms(start)
        last = _to_ms(end)
        base_price = 100.0
        candles = []

        while current <= last:
            open_price = base_price
            close_price = open_price * 1.001
            candles.append(
                Candle(
                    timestamp=current,
                    open=open_price,
                    high=close_price * 1.01,
                    low=open_price * 0.99,
                    close=close_price,
                    volume=1_000_000,
                )
            )
            current += step
            base_price = close_price

        logger.info(f"Generated {len(candles)} mock candles for {symbol} {timeframe}")
        return candles
