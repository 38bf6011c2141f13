"""Confidence scoring, weak-setup filtering and breakout timing."""

from .breakout import expected_breakout_time
from .breakout import expected_candles_to_breakout
from .confidence import ScoringConfig
from .confidence import apply_multi_timeframe_confirmation
from .confidence import calculate_confidence
from .confidence import filter_detections
from .confidence import is_confirmed_by
from .confidence import score_detection
from .confidence import score_detections

__all__ = [
    "ScoringConfig",
    "apply_multi_timeframe_confirmation",
    "calculate_confidence",
    "expected_breakout_time",
    "expected_candles_to_breakout",
    "filter_detections",
    "is_confirmed_by",
    "score_detection",
    "score_detections",
]
