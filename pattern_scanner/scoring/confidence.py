"""Confidence scoring for detected patterns.

The score is a fixed additive heuristic: a base score plus bonuses for the
pattern family, the timeframe, risk/reward, profit potential, a volume surge,
EMA trend agreement and RSI agreement. Scores are clamped to [0, 100].

Scoring never mutates a detection; updated copies are returned.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from pattern_scanner.core.config import Settings
from pattern_scanner.core.constants import lower_timeframe
from pattern_scanner.models.candle import Candle
from pattern_scanner.models.pattern import Direction, PatternDetection, PatternType

logger = logging.getLogger(__name__)


def _default_pattern_bonuses() -> dict[PatternType, float]:
    return {
        PatternType.ASCENDING_TRIANGLE: 8.0,
        PatternType.BULL_FLAG: 5.0,
        PatternType.BEAR_FLAG: 5.0,
    }


def _default_timeframe_bonuses() -> dict[str, float]:
    return {"1d": 10.0, "4h": 5.0}


@dataclass(frozen=True)
class ScoringConfig:
    """Base score, bonuses and thresholds of the confidence model.

    Tiered bonuses are ``(threshold, bonus)`` pairs checked from the first
    pair onward; the first threshold met wins.
    """

    base_score: float = 60.0
    min_score: float = 0.0
    max_score: float = 100.0
    pattern_bonuses: dict[PatternType, float] = field(
        default_factory=_default_pattern_bonuses
    )
    timeframe_bonuses: dict[str, float] = field(
        default_factory=_default_timeframe_bonuses
    )
    risk_reward_tiers: tuple[tuple[float, float], ...] = ((3.0, 10.0), (2.5, 5.0))
    profit_tiers: tuple[tuple[float, float], ...] = ((10.0, 10.0), (7.0, 5.0))
    volume_window: int = 5
    volume_surge_ratio: float = 1.2
    volume_bonus: float = 5.0
    trend_bonus: float = 5.0
    rsi_bonus: float = 5.0
    bullish_rsi_range: tuple[float, float] = (50.0, 70.0)
    bearish_rsi_range: tuple[float, float] = (30.0, 50.0)
    multi_timeframe_boost: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringConfig":
        """Build a config using the boost configured in settings."""
        return cls(multi_timeframe_boost=settings.multi_timeframe_boost)

    def clamp(self, score: float) -> float:
        return max(self.min_score, min(self.max_score, score))


def _tier_bonus(value: float, tiers: tuple[tuple[float, float], ...]) -> float:
    for threshold, bonus in tiers:
        if value >= threshold:
            return bonus
    return 0.0


def _has_volume_surge(context: Sequence[Candle], config: ScoringConfig) -> bool:
    window = config.volume_window
    if len(context) < window * 2:
        return False
    recent = context[-window:]
    previous = context[-2 * window : -window]
    recent_avg = sum(c.volume for c in recent) / window
    previous_avg = sum(c.volume for c in previous) / window
    return recent_avg > previous_avg * config.volume_surge_ratio


def _trend_agrees(candle: Candle, direction: Direction) -> bool:
    if direction == Direction.BULLISH:
        return candle.ema20 > candle.ema50
    return candle.ema20 < candle.ema50


def _rsi_agrees(candle: Candle, direction: Direction, config: ScoringConfig) -> bool:
    if direction == Direction.BULLISH:
        low, high = config.bullish_rsi_range
    else:
        low, high = config.bearish_rsi_range
    return low < candle.rsi14 < high


def calculate_confidence(
    detection: PatternDetection,
    candles: Sequence[Candle],
    config: ScoringConfig | None = None,
) -> float:
    """Compute the confidence score of a detection.

    Args:
        detection: Detection to score
        candles: Enriched series the detection was found in. Only candles up
            to and including the detection's candle are considered.
        config: Scoring model (defaults to ScoringConfig())

    Returns:
        Confidence score in [min_score, max_score]
    """
    config = config or ScoringConfig()
    score = config.base_score

    score += config.pattern_bonuses.get(detection.pattern_type, 0.0)
    score += config.timeframe_bonuses.get(detection.timeframe, 0.0)
    score += _tier_bonus(detection.risk_reward_ratio, config.risk_reward_tiers)
    score += _tier_bonus(detection.potential_profit_percent, config.profit_tiers)

    context = candles[: detection.candle_index + 1]
    if context:
        last = context[-1]
        if _has_volume_surge(context, config):
            score += config.volume_bonus
        if _trend_agrees(last, detection.direction):
            score += config.trend_bonus
        if _rsi_agrees(last, detection.direction, config):
            score += config.rsi_bonus

    return config.clamp(score)


def score_detection(
    detection: PatternDetection,
    candles: Sequence[Candle],
    config: ScoringConfig | None = None,
) -> PatternDetection:
    """Return a copy of the detection with its confidence score filled."""
    return replace(
        detection, confidence_score=calculate_confidence(detection, candles, config)
    )


def score_detections(
    detections: Sequence[PatternDetection],
    candles: Sequence[Candle],
    config: ScoringConfig | None = None,
) -> list[PatternDetection]:
    """Score every detection found in one series."""
    config = config or ScoringConfig()
    return [score_detection(d, candles, config) for d in detections]


def filter_detections(
    detections: Sequence[PatternDetection],
    confidence_threshold: float = 80.0,
    profit_threshold: float = 5.0,
) -> list[PatternDetection]:
    """Drop weak setups.

    Args:
        detections: Scored detections
        confidence_threshold: Minimum confidence score (inclusive)
        profit_threshold: Minimum potential profit percent (inclusive)

    Returns:
        Detections meeting both thresholds, in input order
    """
    return [
        d
        for d in detections
        if d.confidence_score >= confidence_threshold
        and d.potential_profit_percent >= profit_threshold
    ]


def is_confirmed_by(detection: PatternDetection, candle: Candle) -> bool:
    """Whether a lower-timeframe candle agrees with the detection's direction."""
    if detection.direction == Direction.BULLISH:
        return candle.ema7 > candle.ema20 and candle.rsi14 > 50
    return candle.ema7 < candle.ema20 and candle.rsi14 < 50


def apply_multi_timeframe_confirmation(
    detections: Sequence[PatternDetection],
    lower_timeframe_candles: Sequence[Candle],
    config: ScoringConfig | None = None,
) -> list[PatternDetection]:
    """Confirm detections against the adjacent lower timeframe.

    Only the last lower-timeframe candle is examined. Confirmed detections are
    flagged, record the confirming timeframe and gain a flat boost (clamped).
    Detections without a lower timeframe, or when no lower-timeframe candles
    are available, are returned unchanged.

    Args:
        detections: Scored detections, all of the same timeframe
        lower_timeframe_candles: Enriched candles of the adjacent lower timeframe
        config: Scoring model providing the boost

    Returns:
        New list of detections
    """
    config = config or ScoringConfig()
    if not lower_timeframe_candles:
        return list(detections)

    last = lower_timeframe_candles[-1]
    confirmed: list[PatternDetection] = []

    for detection in detections:
        confirming = lower_timeframe(detection.timeframe)
        if confirming is None or not is_confirmed_by(detection, last):
            confirmed.append(detection)
            continue
        confirmed.append(
            replace(
                detection,
                multi_timeframe_confirmed=True,
                confirming_timeframe=confirming,
                confidence_score=config.clamp(
                    detection.confidence_score + config.multi_timeframe_boost
                ),
            )
        )

    logger.debug(
        "Multi-timeframe confirmation: %d of %d detections confirmed",
        sum(1 for d in confirmed if d.multi_timeframe_confirmed),
        len(confirmed),
    )
    return confirmed
