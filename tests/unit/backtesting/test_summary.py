"""Unit tests for backtest result aggregation."""
from datetime import datetime, timedelta, timezone

import pytest

from pattern_scanner.backtesting import (
    confirmation_lift,
    default_consistency_score,
    summarize,
    summarize_by_pattern_type,
    summarize_by_timeframe,
)
from pattern_scanner.models.pattern import BacktestResult, PatternType

START = datetime(2024, 1, 2, tzinfo=timezone.utc)


def make_result(
    profit_loss: float,
    success: bool,
    day: int = 0,
    timeframe: str = "1d",
    pattern_type: PatternType = PatternType.BULL_FLAG,
    confidence: float = 80.0,
    candles_to_breakout: int = 2,
    confirmed: bool = False,
) -> BacktestResult:
    return BacktestResult(
        pattern_id=f"p{day}-{timeframe}-{profit_loss}",
        success=success,
        profit_loss_percent=profit_loss,
        candles_to_breakout=candles_to_breakout,
        entry_price=100.0,
        exit_price=100.0 + profit_loss,
        symbol="TEST",
        timeframe=timeframe,
        pattern_type=pattern_type,
        detected_at=START + timedelta(days=day),
        confidence_score=confidence,
        multi_timeframe_confirmed=confirmed,
    )


@pytest.mark.unit
class TestSummarize:
    """Tests for the overall summary."""

    def test_two_wins_two_losses(self):
        """A losing trade with positive P/L still counts as a loss."""
        results = [
            make_result(10.0, True, day=0),
            make_result(20.0, True, day=1),
            make_result(-5.0, False, day=2),
            make_result(1.0, False, day=3),
        ]

        summary = summarize(results)

        assert summary.total_patterns == 4
        assert summary.successful_patterns == 2
        assert summary.failed_patterns == 2
        assert summary.success_rate == pytest.approx(50.0)
        assert summary.avg_win == pytest.approx(15.0)
        assert summary.avg_loss == pytest.approx(3.0)
        assert summary.risk_reward_ratio == pytest.approx(5.0)
        assert summary.avg_profit_loss_percent == pytest.approx(6.5)
        assert summary.max_profit == pytest.approx(20.0)
        assert summary.max_loss == pytest.approx(-5.0)
        assert summary.max_win_streak == 2
        assert summary.max_loss_streak == 2

    def test_empty_results(self):
        summary = summarize([])

        assert summary.total_patterns == 0
        assert summary.success_rate == 0.0
        assert summary.timeframe == "all"

    def test_no_losses_gives_zero_ratio(self):
        summary = summarize([make_result(4.0, True), make_result(6.0, True, day=1)])

        assert summary.avg_loss == 0.0
        assert summary.risk_reward_ratio == 0.0
        assert summary.max_loss == 0.0

    def test_streaks_follow_detection_time(self):
        """Input order is irrelevant; streaks are measured chronologically."""
        results = [
            make_result(-1.0, False, day=4),
            make_result(2.0, True, day=0),
            make_result(-1.0, False, day=3),
            make_result(2.0, True, day=1),
            make_result(2.0, True, day=2),
        ]

        summary = summarize(results)

        assert summary.max_win_streak == 3
        assert summary.max_loss_streak == 2

    def test_unscored_results_excluded_from_confidence(self):
        results = [
            make_result(1.0, True, confidence=0.0),
            make_result(1.0, True, day=1, confidence=90.0),
            make_result(1.0, True, day=2, confidence=70.0),
        ]

        assert summarize(results).avg_confidence_score == pytest.approx(80.0)

    def test_avg_candles_to_breakout(self):
        results = [
            make_result(1.0, True, candles_to_breakout=3),
            make_result(-1.0, False, day=1, candles_to_breakout=0),
        ]

        assert summarize(results).avg_candles_to_breakout == pytest.approx(1.5)

    def test_filters_by_timeframe_and_pattern(self):
        results = [
            make_result(5.0, True, timeframe="1h"),
            make_result(-2.0, False, timeframe="1d"),
            make_result(3.0, True, timeframe="1d", pattern_type=PatternType.CHANNEL),
        ]

        hourly = summarize(results, timeframe="1h")
        channels = summarize(results, pattern_type="Channel")

        assert hourly.total_patterns == 1
        assert hourly.timeframe == "1h"
        assert channels.total_patterns == 1
        assert channels.pattern_type == "Channel"

    def test_custom_consistency_scorer(self):
        results = [make_result(10.0, True), make_result(-10.0, False, day=1)]

        summary = summarize(results, consistency=lambda pl: float(len(pl)))

        assert summary.consistency_score == 2.0


@pytest.mark.unit
class TestConsistencyScore:
    """Tests for the default consistency scorer."""

    def test_identical_results_score_100(self):
        assert default_consistency_score([3.0, 3.0, 3.0]) == pytest.approx(100.0)

    def test_spread_lowers_score(self):
        # population std of [-5, 5] is 5
        assert default_consistency_score([-5.0, 5.0]) == pytest.approx(75.0)

    def test_spread_capped(self):
        assert default_consistency_score([-50.0, 50.0]) == 0.0

    def test_empty(self):
        assert default_consistency_score([]) == 0.0


@pytest.mark.unit
class TestGroupedSummaries:
    """Tests for per-timeframe and per-pattern summaries."""

    def test_by_timeframe(self):
        results = [
            make_result(5.0, True, timeframe="1h"),
            make_result(-2.0, False, day=1, timeframe="1h"),
            make_result(3.0, True, timeframe="1d"),
        ]

        summaries = summarize_by_timeframe(results)

        assert sorted(summaries) == ["1d", "1h"]
        assert summaries["1h"].total_patterns == 2
        assert summaries["1h"].success_rate == pytest.approx(50.0)
        assert summaries["1d"].success_rate == pytest.approx(100.0)

    def test_by_pattern_type(self):
        results = [
            make_result(5.0, True, pattern_type=PatternType.BULL_FLAG),
            make_result(-2.0, False, day=1, pattern_type=PatternType.ASCENDING_TRIANGLE),
            make_result(4.0, True, day=2, pattern_type=PatternType.ASCENDING_TRIANGLE),
        ]

        summaries = summarize_by_pattern_type(results)

        assert set(summaries) == {"Bull Flag", "Ascending Triangle"}
        triangle = summaries["Ascending Triangle"]
        assert triangle.timeframe == "all"
        assert triangle.total_patterns == 2
        assert triangle.avg_win == pytest.approx(4.0)
        assert triangle.avg_loss == pytest.approx(2.0)

    def test_empty_groups(self):
        assert summarize_by_timeframe([]) == {}


@pytest.mark.unit
class TestConfirmationLift:
    """Tests for comparing confirmed and unconfirmed cohorts."""

    def test_confirmed_cohort_outperforms(self):
        results = [
            make_result(6.0, True, confirmed=True),
            make_result(4.0, True, day=1, confirmed=True),
            make_result(5.0, True, day=2),
            make_result(-5.0, False, day=3),
        ]

        lift = confirmation_lift(results)

        assert lift.confirmed.total_patterns == 2
        assert lift.confirmed.success_rate == pytest.approx(100.0)
        assert lift.unconfirmed.success_rate == pytest.approx(50.0)
        assert lift.success_rate_delta == pytest.approx(50.0)
        assert lift.risk_reward_delta == pytest.approx(0.0 - 1.0)
        assert lift.to_dict()["confirmed"]["total_patterns"] == 2
