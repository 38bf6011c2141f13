"""Channel classification for Pattern Scanner.

Fits least-squares lines through the highs and the lows of a window and
classifies the channel by the sign and magnitude of both slopes.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from pattern_scanner.indicators.technical import linear_regression_slope
from pattern_scanner.models.candle import Candle
from pattern_scanner.models.pattern import ChannelType

DEFAULT_SLOPE_THRESHOLD = 0.05


@dataclass
class ChannelAnalysis:
    """Result of channel classification.

    Attributes:
        channel_type: Ascending, descending or horizontal
        highs_slope: Regression slope of the highs (price per candle)
        lows_slope: Regression slope of the lows (price per candle)
        support: Lowest low in the window
        resistance: Highest high in the window
    """

    channel_type: ChannelType
    highs_slope: float
    lows_slope: float
    support: float
    resistance: float

    @property
    def trend_strength(self) -> float:
        return abs(self.highs_slope) + abs(self.lows_slope)


def classify_channel(
    candles: Sequence[Candle],
    slope_threshold: float = DEFAULT_SLOPE_THRESHOLD,
) -> ChannelAnalysis:
    """Classify a window of candles as an ascending, descending or flat channel.

    A channel is ascending only when both the highs and the lows slope up by
    more than ``slope_threshold`` per candle, descending when both slope down
    by more than it, and horizontal otherwise.

    Args:
        candles: Window of candles, oldest first (must not be empty)
        slope_threshold: Minimum absolute slope for a trending channel

    Returns:
        ChannelAnalysis for the window

    Raises:
        ValueError: If candles is empty
    """
    if not candles:
        raise ValueError("Cannot classify an empty window")

    highs = [c.high for c in candles]
    lows = [c.low for c in candles]
    highs_slope = linear_regression_slope(highs)
    lows_slope = linear_regression_slope(lows)

    if highs_slope > slope_threshold and lows_slope > slope_threshold:
        channel_type = ChannelType.ASCENDING
    elif highs_slope < -slope_threshold and lows_slope < -slope_threshold:
        channel_type = ChannelType.DESCENDING
    else:
        channel_type = ChannelType.HORIZONTAL

    return ChannelAnalysis(
        channel_type=channel_type,
        highs_slope=highs_slope,
        lows_slope=lows_slope,
        support=min(lows),
        resistance=max(highs),
    )
