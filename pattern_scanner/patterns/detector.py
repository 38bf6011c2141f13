"""Windowed pattern scan over one symbol/timeframe series.

The driver slides each family's fixed window across the series so that a
window ends at every index, asks the family evaluator for setups, and turns
each setup into a PatternDetection. Setups with non-positive risk or a
risk/reward below the configured minimum are discarded here, so every
emitted detection satisfies ``risk_reward_ratio >= min_risk_reward``.
"""

import logging
from collections.abc import Sequence

from pattern_scanner.core.constants import interval_ms
from pattern_scanner.models.candle import Candle
from pattern_scanner.models.pattern import Direction, PatternDetection
from pattern_scanner.patterns.config import DetectorConfig, PatternFamily
from pattern_scanner.patterns.families import FAMILY_EVALUATORS, PatternSetup

logger = logging.getLogger(__name__)


def risk_and_reward(setup: PatternSetup) -> tuple[float, float]:
    """Risk and reward of a setup, both positive for a well-formed trade."""
    if setup.direction == Direction.BULLISH:
        return (
            setup.entry_price - setup.stop_loss,
            setup.target_price - setup.entry_price,
        )
    return (
        setup.stop_loss - setup.entry_price,
        setup.entry_price - setup.target_price,
    )


def _to_detection(
    setup: PatternSetup,
    symbol: str,
    timeframe: str,
    candle: Candle,
    candle_index: int,
    config: DetectorConfig,
) -> PatternDetection | None:
    risk, reward = risk_and_reward(setup)
    if risk <= 0 or setup.entry_price <= 0:
        return None

    risk_reward_ratio = reward / risk
    if risk_reward_ratio < config.min_risk_reward:
        return None

    return PatternDetection(
        symbol=symbol,
        pattern_type=setup.pattern_type,
        direction=setup.direction,
        timeframe=timeframe,
        entry_price=setup.entry_price,
        target_price=setup.target_price,
        stop_loss=setup.stop_loss,
        risk_reward_ratio=risk_reward_ratio,
        potential_profit_percent=reward / setup.entry_price * 100,
        detected_at=candle.opened_at,
        candle_index=candle_index,
        support_level=setup.support_level,
        resistance_level=setup.resistance_level,
        channel_type=setup.channel_type,
        volume_confirmation=setup.volume_confirmation,
    )


def scan_family(
    family: PatternFamily,
    symbol: str,
    candles: Sequence[Candle],
    timeframe: str,
    config: DetectorConfig,
) -> list[PatternDetection]:
    """Run one family's evaluator over every trailing window of the series."""
    window = config.window_size(family)
    evaluator = FAMILY_EVALUATORS[family]
    detections = []

    for end in range(window - 1, len(candles)):
        window_candles = candles[end - window + 1 : end + 1]
        for setup in evaluator(window_candles, config):
            detection = _to_detection(
                setup, symbol, timeframe, candles[end], end, config
            )
            if detection is not None:
                detections.append(detection)

    return detections


def detect_patterns(
    symbol: str,
    candles: Sequence[Candle],
    timeframe: str,
    config: DetectorConfig | None = None,
) -> list[PatternDetection]:
    """Detect all configured pattern families in a validated series.

    Args:
        symbol: Ticker symbol
        candles: Validated candles, oldest first
        timeframe: Timeframe string of the series
        config: Detector thresholds (defaults to DetectorConfig())

    Returns:
        Detections with confidence_score = 0, concatenated in family order.
        Empty when the series is shorter than every family window.

    Raises:
        InvalidTimeframeError: If the timeframe is not supported
    """
    interval_ms(timeframe)
    config = config or DetectorConfig()

    detections: list[PatternDetection] = []
    for family in config.families:
        detections.extend(scan_family(family, symbol, candles, timeframe, config))

    logger.debug(
        "Detected %d patterns for %s on %s across %d candles",
        len(detections),
        symbol,
        timeframe,
        len(candles),
    )
    return detections
