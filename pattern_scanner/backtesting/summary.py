"""Aggregate statistics over backtest results.

Results are loaded into a pandas DataFrame so the same summary routine can
be applied to the whole set, to each timeframe and to each pattern type.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from pattern_scanner.models.pattern import BacktestResult
from pattern_scanner.models.pattern import BacktestSummary

ALL = "all"
MAX_CONSISTENCY_STD = 20.0

ConsistencyScorer = Callable[[Sequence[float]], float]


def default_consistency_score(profit_loss: Sequence[float]) -> float:
    """Score 0-100 that falls as the spread of P/L percentages grows.

    Uses the population standard deviation, capped at 20 percentage points.
    """
    if len(profit_loss) == 0:
        return 0.0
    std = float(np.std(np.asarray(profit_loss, dtype=float)))
    return 100.0 * (1 - min(std, MAX_CONSISTENCY_STD) / MAX_CONSISTENCY_STD)


def results_frame(results: Sequence[BacktestResult]) -> pd.DataFrame:
    """Tabulate results, one row per result."""
    return pd.DataFrame(
        [
            {
                "pattern_id": r.pattern_id,
                "success": r.success,
                "profit_loss_percent": r.profit_loss_percent,
                "candles_to_breakout": r.candles_to_breakout,
                "confidence_score": r.confidence_score,
                "timeframe": r.timeframe,
                "pattern_type": r.pattern_type.value,
                "detected_at": r.detected_at,
                "multi_timeframe_confirmed": r.multi_timeframe_confirmed,
            }
            for r in results
        ],
        columns=[
            "pattern_id",
            "success",
            "profit_loss_percent",
            "candles_to_breakout",
            "confidence_score",
            "timeframe",
            "pattern_type",
            "detected_at",
            "multi_timeframe_confirmed",
        ],
    )


def _max_streaks(outcomes: Sequence[bool]) -> tuple[int, int]:
    max_wins = max_losses = wins = losses = 0
    for success in outcomes:
        if success:
            wins += 1
            losses = 0
            max_wins = max(max_wins, wins)
        else:
            losses += 1
            wins = 0
            max_losses = max(max_losses, losses)
    return max_wins, max_losses


def _summarize_frame(
    frame: pd.DataFrame,
    timeframe: str,
    pattern_type: str | None,
    consistency: ConsistencyScorer,
) -> BacktestSummary:
    summary = BacktestSummary(timeframe=timeframe, pattern_type=pattern_type)
    if frame.empty:
        return summary

    total = len(frame)
    profit_loss = frame["profit_loss_percent"].astype(float)
    success = frame["success"].astype(bool)
    winners = profit_loss[success]
    losers = profit_loss[~success]

    summary.total_patterns = total
    summary.successful_patterns = len(winners)
    summary.failed_patterns = len(losers)
    summary.success_rate = len(winners) / total * 100
    summary.avg_win = float(winners.mean()) if len(winners) else 0.0
    summary.avg_loss = float(losers.abs().mean()) if len(losers) else 0.0
    summary.risk_reward_ratio = (
        summary.avg_win / summary.avg_loss if summary.avg_loss != 0 else 0.0
    )

    ordered = frame.sort_values("detected_at", kind="stable")
    summary.max_win_streak, summary.max_loss_streak = _max_streaks(
        ordered["success"].tolist()
    )

    summary.consistency_score = consistency(profit_loss.tolist())
    summary.avg_candles_to_breakout = float(frame["candles_to_breakout"].mean())

    scored = frame.loc[frame["confidence_score"] > 0, "confidence_score"]
    summary.avg_confidence_score = float(scored.mean()) if len(scored) else 0.0
    summary.avg_profit_loss_percent = float(profit_loss.mean())
    summary.max_profit = max(float(profit_loss.max()), 0.0)
    summary.max_loss = min(float(profit_loss.min()), 0.0)
    return summary


def summarize(
    results: Sequence[BacktestResult],
    timeframe: str = ALL,
    pattern_type: str | None = None,
    consistency: ConsistencyScorer = default_consistency_score,
) -> BacktestSummary:
    """Summarize backtest results, optionally narrowed to one group.

    Args:
        results: Backtest results
        timeframe: Timeframe to keep, or "all"
        pattern_type: Pattern type name to keep, or None / "all"
        consistency: Callable mapping P/L percentages to a 0-100 score

    Returns:
        BacktestSummary (all zero when nothing matches)
    """
    frame = results_frame(results)
    if timeframe != ALL:
        frame = frame[frame["timeframe"] == timeframe]
    if pattern_type and pattern_type != ALL:
        frame = frame[frame["pattern_type"] == pattern_type]
    return _summarize_frame(frame, timeframe, pattern_type, consistency)


def summarize_by_timeframe(
    results: Sequence[BacktestResult],
    consistency: ConsistencyScorer = default_consistency_score,
) -> dict[str, BacktestSummary]:
    """One summary per timeframe present in the results."""
    frame = results_frame(results)
    return {
        str(tf): _summarize_frame(group, str(tf), None, consistency)
        for tf, group in frame.groupby("timeframe", sort=True)
    }


def summarize_by_pattern_type(
    results: Sequence[BacktestResult],
    consistency: ConsistencyScorer = default_consistency_score,
) -> dict[str, BacktestSummary]:
    """One summary per pattern type present in the results, across timeframes."""
    frame = results_frame(results)
    return {
        str(pt): _summarize_frame(group, ALL, str(pt), consistency)
        for pt, group in frame.groupby("pattern_type", sort=True)
    }


@dataclass
class ConfirmationLift:
    """Comparison of multi-timeframe confirmed and unconfirmed cohorts."""

    confirmed: BacktestSummary
    unconfirmed: BacktestSummary
    success_rate_delta: float
    risk_reward_delta: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "confirmed": self.confirmed.to_dict(),
            "unconfirmed": self.unconfirmed.to_dict(),
            "success_rate_delta": self.success_rate_delta,
            "risk_reward_delta": self.risk_reward_delta,
        }


def confirmation_lift(
    results: Sequence[BacktestResult],
    consistency: ConsistencyScorer = default_consistency_score,
) -> ConfirmationLift:
    """Measure how multi-timeframe confirmation changes outcomes.

    Deltas are confirmed minus unconfirmed; positive values mean confirmed
    setups performed better.
    """
    frame = results_frame(results)
    confirmed_mask = frame["multi_timeframe_confirmed"].astype(bool)
    confirmed = _summarize_frame(frame[confirmed_mask], ALL, None, consistency)
    unconfirmed = _summarize_frame(frame[~confirmed_mask], ALL, None, consistency)
    return ConfirmationLift(
        confirmed=confirmed,
        unconfirmed=unconfirmed,
        success_rate_delta=confirmed.success_rate - unconfirmed.success_rate,
        risk_reward_delta=confirmed.risk_reward_ratio - unconfirmed.risk_reward_ratio,
    )
