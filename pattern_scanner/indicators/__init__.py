"""Technical indicators package for Pattern Scanner.

Available indicators:
- Exponential Moving Average (EMA)
- Relative Strength Index (RSI)
- True Range / Average True Range (ATR)
- Linear regression slope and channel classification
- Candle enrichment (EMA 7/20/50/100, RSI 14, ATR 14)
"""

from .technical import average_true_range
from .technical import exponential_moving_average
from .technical import linear_regression_slope
from .technical import relative_strength_index
from .technical import true_range
from .channel import (
    ChannelAnalysis,
    classify_channel,
)
from .engine import enrich_candles

__all__ = [
    "exponential_moving_average",
    "relative_strength_index",
    "true_range",
    "average_true_range",
    "linear_regression_slope",
    "ChannelAnalysis",
    "classify_channel",
    "enrich_candles",
]
