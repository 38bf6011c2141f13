"""Technical indicators implementation for Pattern Scanner.

This module provides NumPy-based implementations of the indicators consumed
by pattern detection and confidence scoring: EMA, RSI and ATR, all seeded
with a simple average and then smoothed recursively.

All functions handle short series gracefully and return NaN for positions
that cannot be computed yet.
"""

import numpy as np
from numpy.typing import NDArray


def exponential_moving_average(
    prices: list[float] | NDArray[np.float64], period: int
) -> NDArray[np.float64]:
    """Calculate Exponential Moving Average (EMA) seeded with an SMA.

    The first value is the simple average of the first ``period`` prices,
    placed at index ``period - 1``. Each later value follows
    EMA[i] = (Price[i] - EMA[i-1]) * α + EMA[i-1], where α = 2 / (period + 1).

    Args:
        prices: Price data as list or numpy array
        period: Number of periods for the average (must be > 0)

    Returns:
        Array of EMA values. NaN before the seed index, all NaN when the
        series is shorter than ``period``.

    Raises:
        ValueError: If period <= 0

    Example:
        >>> ema = exponential_moving_average([10.0, 11.0, 12.0, 13.0], 3)
        >>> # Returns [NaN, NaN, 11.0, 12.0]
    """
    if period <= 0:
        raise ValueError("Period must be greater than 0")

    prices_array = np.array(prices, dtype=float)
    ema = np.full(len(prices_array), np.nan)

    if len(prices_array) < period:
        return ema

    alpha = 2.0 / (period + 1)
    ema[period - 1] = prices_array[:period].mean()

    for i in range(period, len(prices_array)):
        ema[i] = (prices_array[i] - ema[i - 1]) * alpha + ema[i - 1]

    return ema


def relative_strength_index(
    prices: list[float] | NDArray[np.float64], period: int = 14
) -> NDArray[np.float64]:
    """Calculate Relative Strength Index (RSI) with Wilder smoothing.

    Average gain and loss are seeded from the first ``period`` price changes
    (losses as positive magnitudes) and then smoothed:
    avg = (avg * (period - 1) + current) / period.
    Formula: RSI = 100 - (100 / (1 + RS)), RS = Average Gain / Average Loss,
    with RSI = 100 whenever the average loss is zero.

    Args:
        prices: Price data as list or numpy array
        period: RSI calculation period (default 14, must be > 0)

    Returns:
        Array of RSI values (0-100) starting at index ``period``. NaN before
        that, all NaN when fewer than ``period + 1`` prices are given.

    Raises:
        ValueError: If period <= 0
    """
    if period <= 0:
        raise ValueError("Period must be greater than 0")

    prices_array = np.array(prices, dtype=float)
    rsi = np.full(len(prices_array), np.nan)

    if len(prices_array) < period + 1:
        return rsi

    delta = np.diff(prices_array)
    gains = np.where(delta > 0, delta, 0.0)
    losses = np.where(delta < 0, -delta, 0.0)

    avg_gain = gains[:period].mean()
    avg_loss = losses[:period].mean()
    rsi[period] = _rsi_from_averages(avg_gain, avg_loss)

    # delta[i - 1] is the change into candle i
    for i in range(period + 1, len(prices_array)):
        avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        rsi[i] = _rsi_from_averages(avg_gain, avg_loss)

    return rsi


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def true_range(
    high: list[float] | NDArray[np.float64],
    low: list[float] | NDArray[np.float64],
    close: list[float] | NDArray[np.float64],
) -> NDArray[np.float64]:
    """Calculate True Range per candle.

    TR[i] = max(High[i] - Low[i], |High[i] - Close[i-1]|, |Low[i] - Close[i-1]|)

    Args:
        high: High prices as list or numpy array
        low: Low prices as list or numpy array
        close: Close prices as list or numpy array

    Returns:
        Array of true ranges. Index 0 is NaN (no previous close).

    Raises:
        ValueError: If arrays have different lengths
    """
    high_array = np.array(high, dtype=float)
    low_array = np.array(low, dtype=float)
    close_array = np.array(close, dtype=float)

    if len(high_array) != len(low_array) or len(high_array) != len(close_array):
        raise ValueError("High, low, and close arrays must have same length")

    tr = np.full(len(high_array), np.nan)
    if len(high_array) < 2:
        return tr

    prev_close = close_array[:-1]
    tr[1:] = np.maximum.reduce(
        [
            high_array[1:] - low_array[1:],
            np.abs(high_array[1:] - prev_close),
            np.abs(low_array[1:] - prev_close),
        ]
    )
    return tr


def average_true_range(
    high: list[float] | NDArray[np.float64],
    low: list[float] | NDArray[np.float64],
    close: list[float] | NDArray[np.float64],
    period: int = 14,
) -> NDArray[np.float64]:
    """Calculate Average True Range (ATR) with Wilder smoothing.

    The seed is the mean of the first ``period`` true ranges (candles 1 to
    ``period``) placed at index ``period``; afterwards
    ATR[i] = (ATR[i-1] * (period - 1) + TR[i]) / period.

    Args:
        high: High prices as list or numpy array
        low: Low prices as list or numpy array
        close: Close prices as list or numpy array
        period: ATR period (default 14, must be > 0)

    Returns:
        Array of ATR values. NaN before index ``period``, all NaN when fewer
        than ``period + 1`` candles are given.

    Raises:
        ValueError: If period <= 0 or arrays have different lengths
    """
    if period <= 0:
        raise ValueError("Period must be greater than 0")

    tr = true_range(high, low, close)
    atr = np.full(len(tr), np.nan)

    if len(tr) < period + 1:
        return atr

    atr[period] = tr[1 : period + 1].mean()
    for i in range(period + 1, len(tr)):
        atr[i] = (atr[i - 1] * (period - 1) + tr[i]) / period

    return atr


def linear_regression_slope(values: list[float] | NDArray[np.float64]) -> float:
    """Least-squares slope of values against their index.

    Args:
        values: Series sampled at x = 0, 1, 2, ...

    Returns:
        Slope per step, 0.0 for fewer than two points
    """
    values_array = np.array(values, dtype=float)
    n = len(values_array)
    if n < 2:
        return 0.0

    x = np.arange(n, dtype=float)
    x_centered = x - x.mean()
    denominator = float(np.sum(x_centered**2))
    if denominator == 0:
        return 0.0
    return float(np.sum(x_centered * (values_array - values_array.mean())) / denominator)
