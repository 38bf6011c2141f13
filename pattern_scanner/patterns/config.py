"""Detector thresholds and the pattern family variant."""
from dataclasses import dataclass
from enum import Enum


class PatternFamily(str, Enum):
    """Pattern families scanned by the detector, in output order."""

    FLAG = "flag"
    TRIANGLE = "triangle"
    CHANNEL = "channel"


@dataclass(frozen=True)
class DetectorConfig:
    """Thresholds for the windowed pattern scan.

    Ratios are fractions (0.05 = 5%). Price buffers are applied as
    multipliers around breakout levels, e.g. entry = resistance * (1 + buffer).
    """

    # Pole-and-flag
    pole_length: int = 10
    flag_length: int = 10
    min_pole_move: float = 0.05
    min_trend_candle_ratio: float = 0.6
    volume_sample_size: int = 3
    max_flag_range: float = 0.10
    max_flag_volume_ratio: float = 0.8

    # Triangles
    triangle_window: int = 20
    triangle_touch_tolerance: float = 0.005
    triangle_min_touches: int = 3
    triangle_segments: int = 4
    triangle_min_trending_deltas: int = 2

    # Channels
    channel_window: int = 8
    channel_slope_threshold: float = 0.05
    channel_ascending_target: float = 1.05
    channel_descending_target: float = 0.95
    channel_horizontal_target: float = 1.03
    channel_volume_ratio: float = 0.8

    # Shared
    breakout_buffer: float = 0.01
    min_risk_reward: float = 2.0
    families: tuple[PatternFamily, ...] = (
        PatternFamily.FLAG,
        PatternFamily.TRIANGLE,
        PatternFamily.CHANNEL,
    )

    def window_size(self, family: PatternFamily) -> int:
        """Number of trailing candles a family examines per index."""
        if family == PatternFamily.FLAG:
            return self.pole_length + self.flag_length
        if family == PatternFamily.TRIANGLE:
            return self.triangle_window
        return self.channel_window
