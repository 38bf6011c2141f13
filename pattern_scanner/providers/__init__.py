"""Candle provider abstractions and implementations.

Available providers:
- MockCandleProvider: Scripted or generated candles for testing
"""

from pattern_scanner.providers.base import CandleProviderInterface
from pattern_scanner.providers.mock import MockCandleProvider

__all__ = [
    "CandleProviderInterface",
    "MockCandleProvider",
]
