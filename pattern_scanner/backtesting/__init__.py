"""Backtest simulation and result aggregation."""

from .simulator import backtest_detection
from .simulator import breakout_trigger
from .simulator import walk_forward_backtest
from .summary import ConfirmationLift
from .summary import confirmation_lift
from .summary import default_consistency_score
from .summary import summarize
from .summary import summarize_by_pattern_type
from .summary import summarize_by_timeframe

__all__ = [
    "ConfirmationLift",
    "backtest_detection",
    "breakout_trigger",
    "confirmation_lift",
    "default_consistency_score",
    "summarize",
    "summarize_by_pattern_type",
    "summarize_by_timeframe",
    "walk_forward_backtest",
]
