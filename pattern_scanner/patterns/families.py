"""Pattern family evaluators.

Each evaluator inspects one trailing window of candles and returns the trade
setups it recognises. Evaluators know nothing about risk/reward filtering or
detection records; the scan driver in ``detector`` owns both.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np

from pattern_scanner.indicators.channel import classify_channel
from pattern_scanner.models.candle import Candle
from pattern_scanner.models.pattern import ChannelType, Direction, PatternType
from pattern_scanner.patterns.config import DetectorConfig, PatternFamily


@dataclass(frozen=True)
class PatternSetup:
    """Trade levels implied by a recognised window."""

    pattern_type: PatternType
    direction: Direction
    entry_price: float
    target_price: float
    stop_loss: float
    support_level: float
    resistance_level: float
    channel_type: ChannelType | None = None
    volume_confirmation: bool | None = None


FamilyEvaluator = Callable[[Sequence[Candle], DetectorConfig], list[PatternSetup]]


def _average_volume(candles: Sequence[Candle]) -> float:
    return sum(c.volume for c in candles) / len(candles)


def _is_pole(
    candles: Sequence[Candle], direction: Direction, config: DetectorConfig
) -> bool:
    """Strong move in the trend direction on rising volume."""
    start_price = candles[0].open
    if start_price <= 0:
        return False
    price_change = (candles[-1].close - start_price) / start_price

    if direction == Direction.BULLISH:
        if price_change < config.min_pole_move:
            return False
        trend_candles = sum(1 for c in candles if c.is_bullish)
    else:
        if price_change > -config.min_pole_move:
            return False
        trend_candles = sum(1 for c in candles if c.is_bearish)

    if trend_candles < len(candles) * config.min_trend_candle_ratio:
        return False

    sample = config.volume_sample_size
    return _average_volume(candles[-sample:]) > _average_volume(candles[:sample])


def _is_flag(candles: Sequence[Candle], config: DetectorConfig) -> bool:
    """Tight consolidation on fading volume."""
    max_high = max(c.high for c in candles)
    min_low = min(c.low for c in candles)
    if min_low <= 0:
        return False
    if (max_high - min_low) / min_low > config.max_flag_range:
        return False

    sample = config.volume_sample_size
    return (
        _average_volume(candles[-sample:])
        <= _average_volume(candles[:sample]) * config.max_flag_volume_ratio
    )


def evaluate_flag(
    window: Sequence[Candle], config: DetectorConfig
) -> list[PatternSetup]:
    """Bull and bear pole-and-flag setups for one window."""
    pole = window[: config.pole_length]
    flag = window[config.pole_length :]
    if not _is_flag(flag, config):
        return []

    buffer = config.breakout_buffer
    flag_high = max(c.high for c in flag)
    flag_low = min(c.low for c in flag)
    setups = []

    if _is_pole(pole, Direction.BULLISH, config):
        entry = flag[-1].high * (1 + buffer)
        pole_height = pole[-1].high - pole[0].low
        setups.append(
            PatternSetup(
                pattern_type=PatternType.BULL_FLAG,
                direction=Direction.BULLISH,
                entry_price=entry,
                target_price=entry + pole_height,
                stop_loss=flag_low * (1 - buffer),
                support_level=flag_low,
                resistance_level=flag_high,
            )
        )
    elif _is_pole(pole, Direction.BEARISH, config):
        entry = flag[-1].low * (1 - buffer)
        pole_height = pole[0].high - pole[-1].low
        setups.append(
            PatternSetup(
                pattern_type=PatternType.BEAR_FLAG,
                direction=Direction.BEARISH,
                entry_price=entry,
                target_price=entry - pole_height,
                stop_loss=flag_high * (1 + buffer),
                support_level=flag_low,
                resistance_level=flag_high,
            )
        )

    return setups


def _segments(window: Sequence[Candle], count: int) -> list[Sequence[Candle]]:
    size = len(window) // count
    return [window[i * size : (i + 1) * size] for i in range(count)]


def _count_touches(values: Sequence[float], level: float, tolerance: float) -> int:
    return sum(1 for v in values if abs(v - level) / level < tolerance)


def evaluate_triangle(
    window: Sequence[Candle], config: DetectorConfig
) -> list[PatternSetup]:
    """Ascending and descending triangle setups for one window.

    Ascending: a flat ceiling (mean of the three highest highs touched at
    least ``triangle_min_touches`` times) over segment lows that keep rising.
    Descending mirrors it with a flat floor and falling segment highs.
    """
    highs = [c.high for c in window]
    lows = [c.low for c in window]
    segments = _segments(window, config.triangle_segments)
    buffer = config.breakout_buffer
    setups = []

    resistance = float(np.mean(sorted(highs, reverse=True)[:3]))
    segment_lows = [min(c.low for c in segment) for segment in segments]
    rising = sum(1 for a, b in zip(segment_lows, segment_lows[1:]) if b > a)
    if (
        resistance > 0
        and _count_touches(highs, resistance, config.triangle_touch_tolerance)
        >= config.triangle_min_touches
        and rising >= config.triangle_min_trending_deltas
    ):
        entry = resistance * (1 + buffer)
        setups.append(
            PatternSetup(
                pattern_type=PatternType.ASCENDING_TRIANGLE,
                direction=Direction.BULLISH,
                entry_price=entry,
                target_price=entry + (resistance - min(lows)),
                stop_loss=segment_lows[-1] * (1 - buffer),
                support_level=min(lows),
                resistance_level=resistance,
            )
        )

    support = float(np.mean(sorted(lows)[:3]))
    segment_highs = [max(c.high for c in segment) for segment in segments]
    falling = sum(1 for a, b in zip(segment_highs, segment_highs[1:]) if b < a)
    if (
        support > 0
        and _count_touches(lows, support, config.triangle_touch_tolerance)
        >= config.triangle_min_touches
        and falling >= config.triangle_min_trending_deltas
    ):
        entry = support * (1 - buffer)
        setups.append(
            PatternSetup(
                pattern_type=PatternType.DESCENDING_TRIANGLE,
                direction=Direction.BEARISH,
                entry_price=entry,
                target_price=entry - (max(highs) - support),
                stop_loss=segment_highs[-1] * (1 + buffer),
                support_level=support,
                resistance_level=max(highs),
            )
        )

    return setups


def evaluate_channel(
    window: Sequence[Candle], config: DetectorConfig
) -> list[PatternSetup]:
    """Channel breakout setup for one window."""
    analysis = classify_channel(window, config.channel_slope_threshold)
    last = window[-1]
    buffer = config.breakout_buffer

    if analysis.channel_type == ChannelType.ASCENDING:
        direction = Direction.BULLISH
        target = analysis.resistance * config.channel_ascending_target
        stop = analysis.support * (1 - buffer)
    elif analysis.channel_type == ChannelType.DESCENDING:
        direction = Direction.BEARISH
        target = analysis.support * config.channel_descending_target
        stop = analysis.resistance * (1 + buffer)
    else:
        direction = Direction.BULLISH
        target = last.close * config.channel_horizontal_target
        stop = analysis.support * (1 - buffer)

    return [
        PatternSetup(
            pattern_type=PatternType.CHANNEL,
            direction=direction,
            entry_price=last.close,
            target_price=target,
            stop_loss=stop,
            support_level=analysis.support,
            resistance_level=analysis.resistance,
            channel_type=analysis.channel_type,
            volume_confirmation=(
                last.volume > _average_volume(window) * config.channel_volume_ratio
            ),
        )
    ]


FAMILY_EVALUATORS: dict[PatternFamily, FamilyEvaluator] = {
    PatternFamily.FLAG: evaluate_flag,
    PatternFamily.TRIANGLE: evaluate_triangle,
    PatternFamily.CHANNEL: evaluate_channel,
}
