"""Forward replay of detections against the candles that followed them.

A detection succeeds when a forward close breaks out of the pattern's
boundary in the expected direction within the lookahead window. The trade is
valued at the breakout close, or at the last scanned close when no breakout
happened.
"""

import logging
from collections.abc import Callable, Sequence

from pattern_scanner.models.candle import Candle
from pattern_scanner.models.pattern import BacktestResult
from pattern_scanner.models.pattern import ChannelType
from pattern_scanner.models.pattern import PatternDetection
from pattern_scanner.models.pattern import PatternType

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD = 20
MIN_FORWARD_CANDLES = 20
HORIZONTAL_BREAKOUT_MARGIN = 0.02


def breakout_trigger(detection: PatternDetection) -> Callable[[float], bool]:
    """Build the close-price test that marks a successful breakout.

    Channel detections are judged by their channel type. Other families are
    judged by direction: bullish setups need a close above resistance,
    bearish setups a close below support.
    """
    support = detection.support_level
    resistance = detection.resistance_level

    if detection.pattern_type == PatternType.CHANNEL:
        if detection.channel_type == ChannelType.HORIZONTAL:
            upper = resistance * (1 + HORIZONTAL_BREAKOUT_MARGIN)
            lower = support * (1 - HORIZONTAL_BREAKOUT_MARGIN)
            return lambda close: close > upper or close < lower
        if detection.channel_type == ChannelType.DESCENDING:
            return lambda close: close < support
        return lambda close: close > resistance

    if detection.is_bullish:
        return lambda close: close > resistance
    return lambda close: close < support


def backtest_detection(
    detection: PatternDetection,
    forward_candles: Sequence[Candle],
    lookahead: int = DEFAULT_LOOKAHEAD,
    min_forward_candles: int = MIN_FORWARD_CANDLES,
) -> BacktestResult | None:
    """Replay one detection against its forward candles.

    Args:
        detection: Scored detection
        forward_candles: Candles strictly after the detection's candle
        lookahead: Maximum forward candles scanned for a breakout
        min_forward_candles: Fewer forward candles than this makes the
            detection not backtestable

    Returns:
        BacktestResult, or None when the detection is not backtestable

    Raises:
        ValueError: If lookahead <= 0
    """
    if lookahead <= 0:
        raise ValueError("Lookahead must be greater than 0")

    if len(forward_candles) < min_forward_candles:
        return None

    scanned = forward_candles[:lookahead]
    triggered = breakout_trigger(detection)

    success = False
    candles_to_breakout = 0
    exit_price = scanned[-1].close
    for index, candle in enumerate(scanned, start=1):
        if triggered(candle.close):
            success = True
            candles_to_breakout = index
            exit_price = candle.close
            break

    entry = detection.entry_price
    return BacktestResult(
        pattern_id=detection.id,
        success=success,
        profit_loss_percent=(exit_price - entry) / entry * 100,
        candles_to_breakout=candles_to_breakout,
        entry_price=entry,
        exit_price=exit_price,
        symbol=detection.symbol,
        timeframe=detection.timeframe,
        pattern_type=detection.pattern_type,
        detected_at=detection.detected_at,
        confidence_score=detection.confidence_score,
        risk_reward_ratio=detection.risk_reward_ratio,
        multi_timeframe_confirmed=detection.multi_timeframe_confirmed,
    )


def walk_forward_backtest(
    detections: Sequence[PatternDetection],
    candles: Sequence[Candle],
    lookahead: int = DEFAULT_LOOKAHEAD,
    min_forward_candles: int = MIN_FORWARD_CANDLES,
) -> list[BacktestResult]:
    """Backtest detections found in a series against the same series.

    Each detection is replayed against the candles after its own index.
    Detections too close to the end of the series are skipped.
    """
    results = []
    for detection in detections:
        result = backtest_detection(
            detection,
            candles[detection.candle_index + 1 :],
            lookahead=lookahead,
            min_forward_candles=min_forward_candles,
        )
        if result is not None:
            results.append(result)

    logger.debug(
        "Backtested %d of %d detections (lookahead=%d)",
        len(results),
        len(detections),
        lookahead,
    )
    return results
