"""Unit tests for the forward-replay backtest simulator."""
import pytest

from pattern_scanner.backtesting import (
    backtest_detection,
    breakout_trigger,
    walk_forward_backtest,
)
from pattern_scanner.models.pattern import ChannelType, Direction, PatternType
from tests.utils.candle_factory import flat_series, make_candle, make_detection


def forward_from_closes(closes):
    return [make_candle(i, c, c + 0.5, c - 0.5, c) for i, c in enumerate(closes)]


def ascending_triangle(**overrides):
    fields = dict(
        pattern_type=PatternType.ASCENDING_TRIANGLE,
        timeframe="1d",
        entry_price=111.1,
        target_price=131.1,
        stop_loss=103.95,
        risk_reward_ratio=2.8,
        potential_profit_percent=18.0,
        support_level=90.0,
        resistance_level=110.0,
        confidence_score=83.0,
    )
    fields.update(overrides)
    return make_detection(**fields)


@pytest.mark.unit
class TestBacktestDetection:
    """Tests for replaying a single detection."""

    def test_no_breakout_within_lookahead(self):
        """Closes stay under resistance: failure valued at the last close."""
        detection = ascending_triangle()
        forward = forward_from_closes([108.0] * 19 + [107.0] + [115.0] * 5)

        result = backtest_detection(detection, forward)

        assert result.success is False
        assert result.candles_to_breakout == 0
        assert result.exit_price == 107.0
        assert result.profit_loss_percent == pytest.approx((107.0 - 111.1) / 111.1 * 100)

    def test_breakout_close_ends_replay(self):
        detection = ascending_triangle()
        forward = forward_from_closes([108.0, 109.0, 112.0, 120.0] + [108.0] * 20)

        result = backtest_detection(detection, forward)

        assert result.success is True
        assert result.candles_to_breakout == 3
        assert result.exit_price == 112.0
        assert result.profit_loss_percent == pytest.approx((112.0 - 111.1) / 111.1 * 100)

    def test_close_between_resistance_and_entry_is_losing_success(self):
        """Success is judged against resistance, P/L against the buffered entry."""
        detection = ascending_triangle()
        forward = forward_from_closes([108.0, 110.5] + [108.0] * 20)

        result = backtest_detection(detection, forward)

        assert result.success is True
        assert result.candles_to_breakout == 2
        assert result.exit_price == 110.5
        assert result.profit_loss_percent < 0
        assert result.profit_loss_percent == pytest.approx((110.5 - 111.1) / 111.1 * 100)

    def test_close_equal_to_resistance_is_not_breakout(self):
        result = backtest_detection(ascending_triangle(), forward_from_closes([110.0] * 20))

        assert result.success is False

    def test_too_few_forward_candles(self):
        assert backtest_detection(ascending_triangle(), flat_series(19)) is None

    def test_custom_minimum(self):
        result = backtest_detection(
            ascending_triangle(), forward_from_closes([112.0] * 5), min_forward_candles=5
        )

        assert result.success is True

    def test_lookahead_limits_scan(self):
        detection = ascending_triangle()
        forward = forward_from_closes([108.0] * 7 + [115.0] + [108.0] * 20)

        result = backtest_detection(detection, forward, lookahead=5)

        assert result.success is False
        assert result.exit_price == 108.0

    def test_lookahead_must_be_positive(self):
        with pytest.raises(ValueError, match="Lookahead"):
            backtest_detection(ascending_triangle(), flat_series(30), lookahead=0)

    def test_bearish_breakout_below_support(self):
        detection = make_detection(
            pattern_type=PatternType.DESCENDING_TRIANGLE,
            direction=Direction.BEARISH,
            entry_price=89.1,
            support_level=90.0,
            resistance_level=110.0,
        )
        forward = forward_from_closes([92.0, 91.0, 89.0] + [95.0] * 20)

        result = backtest_detection(detection, forward)

        assert result.success is True
        assert result.candles_to_breakout == 3
        # Loss-signed even though the short trade made money
        assert result.profit_loss_percent == pytest.approx((89.0 - 89.1) / 89.1 * 100)

    def test_result_copies_detection_fields(self):
        detection = ascending_triangle(multi_timeframe_confirmed=True)

        result = backtest_detection(detection, forward_from_closes([108.0] * 20))

        assert result.pattern_id == detection.id
        assert result.symbol == detection.symbol
        assert result.pattern_type == PatternType.ASCENDING_TRIANGLE
        assert result.confidence_score == 83.0
        assert result.multi_timeframe_confirmed is True
        assert result.entry_price == 111.1

    def test_replay_is_deterministic(self):
        detection = ascending_triangle()
        forward = forward_from_closes([108.0 + (i % 4) for i in range(30)])

        first = backtest_detection(detection, forward)
        second = backtest_detection(detection, forward)

        assert (first.success, first.candles_to_breakout, first.exit_price) == (
            second.success,
            second.candles_to_breakout,
            second.exit_price,
        )


@pytest.mark.unit
class TestBreakoutTrigger:
    """Tests for breakout conditions per family."""

    def channel(self, channel_type, **overrides):
        return make_detection(
            pattern_type=PatternType.CHANNEL,
            channel_type=channel_type,
            support_level=99.0,
            resistance_level=101.0,
            **overrides,
        )

    def test_horizontal_channel_needs_two_percent(self):
        triggered = breakout_trigger(self.channel(ChannelType.HORIZONTAL))

        assert triggered(102.0) is False
        assert triggered(103.1) is True
        assert triggered(97.5) is False
        assert triggered(97.0) is True

    def test_descending_channel_breaks_down(self):
        triggered = breakout_trigger(self.channel(ChannelType.DESCENDING))

        assert triggered(98.9) is True
        assert triggered(101.5) is False

    def test_ascending_channel_breaks_up(self):
        triggered = breakout_trigger(self.channel(ChannelType.ASCENDING))

        assert triggered(101.5) is True
        assert triggered(98.0) is False

    def test_flag_uses_direction(self):
        bullish = breakout_trigger(make_detection(support_level=97.0, resistance_level=101.0))
        bearish = breakout_trigger(
            make_detection(
                pattern_type=PatternType.BEAR_FLAG,
                direction=Direction.BEARISH,
                support_level=97.0,
                resistance_level=101.0,
            )
        )

        assert bullish(101.5) is True
        assert bearish(96.5) is True
        assert bearish(101.5) is False


@pytest.mark.unit
class TestWalkForwardBacktest:
    """Tests for replaying detections against their own series."""

    def test_uses_candles_after_detection(self):
        closes = [100.0] * 15 + [102.0] + [100.0] * 34
        candles = forward_from_closes(closes)
        detection = make_detection(candle_index=10, resistance_level=101.0)

        results = walk_forward_backtest([detection], candles)

        assert len(results) == 1
        assert results[0].success is True
        assert results[0].candles_to_breakout == 5

    def test_detections_near_end_skipped(self):
        candles = flat_series(50)
        early = make_detection(candle_index=10)
        late = make_detection(candle_index=35)

        results = walk_forward_backtest([early, late], candles)

        assert [r.pattern_id for r in results] == [early.id]

    def test_empty_input(self):
        assert walk_forward_backtest([], flat_series(50)) == []
