"""Base provider interface for candle data sources.

Scanner services depend only on this contract, so real market data clients
and the mock provider used in tests are interchangeable.
"""
from abc import ABC, abstractmethod
from datetime import datetime

from pattern_scanner.models.candle import Candle


class CandleProviderInterface(ABC):
    """
    Abstract interface for OHLCV candle providers.

    Implementations return raw candles; validation is the scanner's job, so
    providers should not drop or repair rows themselves.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider (e.g., 'mock')."""
        pass

    @property
    @abstractmethod
    def supported_timeframes(self) -> list[str]:
        """Return list of supported timeframe values."""
        pass

    @abstractmethod
    async def fetch_candles(
        self,
        symbol: str,
        timeframe: str,
        start: datetime,
        end: datetime,
    ) -> list[Candle]:
        """
        Fetch historical candles for one symbol and timeframe.

        Args:
            symbol: Stock symbol (e.g., 'AAPL')
            timeframe: Timeframe string (e.g., '1d')
            start: Start of the requested range (inclusive)
            end: End of the requested range (inclusive)

        Returns:
            Candles, oldest first when the upstream source orders them

        Raises:
            DataProviderError: If the upstream source fails
        """
        pass
