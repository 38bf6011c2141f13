"""Data models for candles, detections and backtest records."""

from pattern_scanner.models.candle import Candle
from pattern_scanner.models.pattern import BacktestResult
from pattern_scanner.models.pattern import BacktestSummary
from pattern_scanner.models.pattern import ChannelType
from pattern_scanner.models.pattern import Direction
from pattern_scanner.models.pattern import PatternDetection
from pattern_scanner.models.pattern import PatternType

__all__ = [
    "BacktestResult",
    "BacktestSummary",
    "Candle",
    "ChannelType",
    "Direction",
    "PatternDetection",
    "PatternType",
]
