"""Tests for the windowed pattern detector."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from pattern_scanner.core.exceptions import InvalidTimeframeError
from pattern_scanner.models.pattern import ChannelType, Direction, PatternType
from pattern_scanner.patterns import DetectorConfig, PatternFamily, detect_patterns
from pattern_scanner.patterns.families import evaluate_channel, evaluate_flag
from tests.utils.candle_factory import (
    ascending_triangle_window,
    bull_flag_series,
    flat_series,
    make_candle,
    series_from_closes,
)

FLAGS_ONLY = DetectorConfig(families=(PatternFamily.FLAG,))
TRIANGLES_ONLY = DetectorConfig(families=(PatternFamily.TRIANGLE,))
CHANNELS_ONLY = DetectorConfig(families=(PatternFamily.CHANNEL,))


@pytest.mark.unit
class TestBullFlag:
    """Tests for pole-and-flag detection."""

    def test_rally_then_quiet_flag_yields_bull_flag(self):
        """20% pole followed by a tight flag on fading volume."""
        candles = bull_flag_series()

        detections = detect_patterns("AAPL", candles, "1h", FLAGS_ONLY)
        bull_flags = [d for d in detections if d.pattern_type == PatternType.BULL_FLAG]

        assert bull_flags
        assert all(d.risk_reward_ratio >= 2 for d in bull_flags)
        assert all(d.confidence_score == 0 for d in bull_flags)
        completed = next(d for d in bull_flags if d.candle_index == 29)
        assert completed.direction == Direction.BULLISH
        assert completed.detected_at == candles[29].opened_at

    def test_bull_flag_levels(self):
        """Entry, target and stop follow the flag and pole extremes."""
        detection = next(
            d
            for d in detect_patterns("AAPL", bull_flag_series(), "1h", FLAGS_ONLY)
            if d.candle_index == 29
        )

        assert detection.entry_price == pytest.approx(120.3 * 1.01)
        assert detection.target_price == pytest.approx(120.3 * 1.01 + (120.2 - 99.8))
        assert detection.stop_loss == pytest.approx(119.5 * 0.99)
        assert detection.support_level == pytest.approx(119.5)
        assert detection.resistance_level == pytest.approx(120.3)
        risk = detection.entry_price - detection.stop_loss
        reward = detection.target_price - detection.entry_price
        assert detection.risk_reward_ratio == pytest.approx(reward / risk)
        assert detection.potential_profit_percent == pytest.approx(
            reward / detection.entry_price * 100
        )

    def test_flat_volume_pole_rejected(self):
        """Pole volume must rise; equal leading and trailing volume fails."""
        candles = [
            c if not 10 <= i < 20 else make_candle(i, c.open, c.high, c.low, c.close, 1000)
            for i, c in enumerate(bull_flag_series())
        ]

        assert evaluate_flag(candles[10:30], DetectorConfig()) == []

    def test_mirrored_series_yields_bear_flag(self):
        """Falling pole with a quiet flag is a bear flag."""
        candles = []
        for i in range(10):
            candles.append(make_candle(i, 120.0, 120.5, 119.5, 120.0))
        for k in range(10):
            open_ = 120.0 - 2 * k
            close = open_ - 2
            candles.append(
                make_candle(10 + k, open_, open_ + 0.2, close - 0.2, close, 1000 + 100 * k)
            )
        for k in range(10):
            candles.append(make_candle(20 + k, 100.0, 100.5, 99.7, 100.2, 1000 - 100 * k))

        detections = detect_patterns("TSLA", candles, "1h", FLAGS_ONLY)

        bear = next(d for d in detections if d.candle_index == 29)
        assert bear.pattern_type == PatternType.BEAR_FLAG
        assert bear.direction == Direction.BEARISH
        assert bear.entry_price == pytest.approx(99.7 * 0.99)
        assert bear.stop_loss == pytest.approx(100.5 * 1.01)
        assert bear.target_price < bear.entry_price < bear.stop_loss


@pytest.mark.unit
class TestTriangles:
    """Tests for ascending and descending triangle detection."""

    def test_ascending_triangle_detected(self):
        candles = ascending_triangle_window()

        detections = detect_patterns("MSFT", candles, "1d", TRIANGLES_ONLY)

        assert len(detections) == 1
        triangle = detections[0]
        assert triangle.pattern_type == PatternType.ASCENDING_TRIANGLE
        assert triangle.resistance_level == pytest.approx(110.0)
        assert triangle.entry_price == pytest.approx(111.1)
        assert triangle.target_price == pytest.approx(111.1 + 20.0)
        assert triangle.stop_loss == pytest.approx(105.0 * 0.99)
        assert triangle.risk_reward_ratio >= 2

    def test_descending_triangle_detected(self):
        """Mirror of the ascending window around 100."""
        mirrored = [
            make_candle(i, 200 - c.open, 200 - c.low, 200 - c.high, 200 - c.close)
            for i, c in enumerate(ascending_triangle_window())
        ]

        detections = detect_patterns("MSFT", mirrored, "1d", TRIANGLES_ONLY)

        assert [d.pattern_type for d in detections] == [PatternType.DESCENDING_TRIANGLE]
        triangle = detections[0]
        assert triangle.support_level == pytest.approx(90.0)
        assert triangle.entry_price == pytest.approx(90.0 * 0.99)
        assert triangle.stop_loss == pytest.approx(95.0 * 1.01)

    def test_too_few_touches(self):
        """A single spike high is not a flat ceiling."""
        candles = ascending_triangle_window()
        candles = [
            make_candle(i, c.open, 108.0 if c.high == 110.0 and i != 4 else c.high, c.low, c.close)
            for i, c in enumerate(candles)
        ]

        assert detect_patterns("MSFT", candles, "1d", TRIANGLES_ONLY) == []


@pytest.mark.unit
class TestChannels:
    """Tests for channel breakout setups."""

    def test_channel_setup_levels(self):
        """Ascending channel targets 5% above resistance."""
        window = [make_candle(i, 100 + i, 101 + i, 99 + i, 100.5 + i) for i in range(8)]

        setup = evaluate_channel(window, DetectorConfig())[0]

        assert setup.channel_type == ChannelType.ASCENDING
        assert setup.entry_price == pytest.approx(107.5)
        assert setup.target_price == pytest.approx(108.0 * 1.05)
        assert setup.stop_loss == pytest.approx(99.0 * 0.99)
        assert setup.volume_confirmation is True

    def test_low_reward_channels_discarded(self):
        """Steady trends far above support fail the risk/reward minimum."""
        window = [make_candle(i, 100 + i, 101 + i, 99 + i, 100.5 + i) for i in range(8)]

        assert detect_patterns("QQQ", window, "1h", CHANNELS_ONLY) == []

    def test_horizontal_channel_near_support(self):
        """A close just above support leaves room for a 3% target."""
        window = [make_candle(i, 100.0, 101.0, 99.0, 100.0) for i in range(7)]
        window.append(make_candle(7, 99.6, 101.0, 99.0, 99.4, 2000))

        detections = detect_patterns("QQQ", window, "1h", CHANNELS_ONLY)

        assert len(detections) == 1
        channel = detections[0]
        assert channel.pattern_type == PatternType.CHANNEL
        assert channel.channel_type == ChannelType.HORIZONTAL
        assert channel.volume_confirmation is True
        assert channel.risk_reward_ratio >= 2


@pytest.mark.unit
class TestDetectPatterns:
    """Tests for the scan driver."""

    def test_short_series_yields_nothing(self):
        assert detect_patterns("AAPL", flat_series(7), "1h") == []

    def test_unknown_timeframe_rejected(self):
        with pytest.raises(InvalidTimeframeError):
            detect_patterns("AAPL", flat_series(30), "2h")

    def test_family_order_preserved(self):
        """Flag detections come before triangle and channel detections."""
        candles = bull_flag_series()

        detections = detect_patterns("AAPL", candles, "1h")
        order = {PatternFamily.FLAG: 0, PatternFamily.TRIANGLE: 1, PatternFamily.CHANNEL: 2}
        family_of = {
            PatternType.BULL_FLAG: PatternFamily.FLAG,
            PatternType.BEAR_FLAG: PatternFamily.FLAG,
            PatternType.ASCENDING_TRIANGLE: PatternFamily.TRIANGLE,
            PatternType.DESCENDING_TRIANGLE: PatternFamily.TRIANGLE,
            PatternType.CHANNEL: PatternFamily.CHANNEL,
        }
        ranks = [order[family_of[d.pattern_type]] for d in detections]

        assert ranks == sorted(ranks)

    @given(
        st.lists(
            st.floats(min_value=50.0, max_value=150.0, allow_nan=False),
            min_size=20,
            max_size=60,
        )
    )
    @settings(max_examples=60, deadline=None)
    def test_every_detection_meets_min_risk_reward(self, closes):
        """No emitted detection has a risk/reward below 2 or non-positive risk."""
        candles = series_from_closes(closes)

        for detection in detect_patterns("RAND", candles, "1h"):
            assert detection.risk_reward_ratio >= 2
            if detection.direction == Direction.BULLISH:
                assert detection.stop_loss < detection.entry_price < detection.target_price
            else:
                assert detection.target_price < detection.entry_price < detection.stop_loss
