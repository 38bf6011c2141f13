"""Chart pattern scanner.

Validates OHLCV candle series, computes technical indicators, detects
pole-and-flag, triangle and channel patterns, scores their confidence and
backtests the implied trades against the candles that followed.
"""

__version__ = "0.1.0"
