"""Indicator engine: enriches a validated candle series with indicator fields.

The engine never mutates its input. It computes EMA(7/20/50/100), RSI(14)
and ATR(14) as independent passes and returns a new list of candles with the
indicator fields filled. Positions an indicator cannot reach yet (series too
short, or before the seed index) keep the default value of 0.
"""

import logging
import math
from collections.abc import Sequence

import numpy as np

from pattern_scanner.indicators.technical import average_true_range
from pattern_scanner.indicators.technical import exponential_moving_average
from pattern_scanner.indicators.technical import relative_strength_index
from pattern_scanner.models.candle import Candle

logger = logging.getLogger(__name__)

EMA_PERIODS = (7, 20, 50, 100)
RSI_PERIOD = 14
ATR_PERIOD = 14


def _field_value(value: float) -> float:
    return 0.0 if math.isnan(value) else float(value)


def enrich_candles(candles: Sequence[Candle]) -> list[Candle]:
    """Compute indicator fields for a chronologically ordered series.

    Args:
        candles: Validated candles, oldest first

    Returns:
        New list of candles with ema7/ema20/ema50/ema100/rsi14/atr14 filled
    """
    if not candles:
        return []

    closes = np.array([c.close for c in candles], dtype=float)
    highs = np.array([c.high for c in candles], dtype=float)
    lows = np.array([c.low for c in candles], dtype=float)

    series: dict[str, np.ndarray] = {
        f"ema{period}": exponential_moving_average(closes, period)
        for period in EMA_PERIODS
    }
    series["rsi14"] = relative_strength_index(closes, RSI_PERIOD)
    series["atr14"] = average_true_range(highs, lows, closes, ATR_PERIOD)

    logger.debug("Enriched %d candles with indicators", len(candles))

    return [
        candle.with_indicators(
            **{name: _field_value(values[i]) for name, values in series.items()}
        )
        for i, candle in enumerate(candles)
    ]
