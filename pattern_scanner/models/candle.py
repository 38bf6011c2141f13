"""Candle data model.

A Candle is one time-bucketed OHLCV bar. Indicator fields default to 0 until
the indicator engine produces an enriched copy of the series.
"""
from dataclasses import dataclass
from dataclasses import replace
from datetime import datetime
from datetime import timezone
from typing import Any


@dataclass(frozen=True)
class Candle:
    """Single OHLCV bar with optional indicator values.

    Raw candles coming from loosely-typed sources may carry ``None`` in any
    price, volume or timestamp field; the integrity validator flags and drops
    such rows, so validated series never contain them.
    """

    timestamp: int  # epoch milliseconds
    open: float
    high: float
    low: float
    close: float
    volume: int
    ema7: float = 0.0
    ema20: float = 0.0
    ema50: float = 0.0
    ema100: float = 0.0
    rsi14: float = 0.0
    atr14: float = 0.0
    interpolated: bool = False

    @property
    def is_bullish(self) -> bool:
        """Close above open."""
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        """Close below open."""
        return self.close < self.open

    @property
    def opened_at(self) -> datetime:
        """Candle open time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)

    def with_indicators(self, **indicators: float) -> "Candle":
        """Return a copy with the given indicator fields replaced."""
        return replace(self, **indicators)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage or serialization."""
        return {
            "timestamp": self.timestamp,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
            "ema7": self.ema7,
            "ema20": self.ema20,
            "ema50": self.ema50,
            "ema100": self.ema100,
            "rsi14": self.rsi14,
            "atr14": self.atr14,
            "interpolated": self.interpolated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Candle":
        """Create from a dictionary.

        Accepts both long keys (``open``) and the short aggregate keys used by
        market data APIs (``o``, ``h``, ``l``, ``c``, ``v``, ``t``). Missing
        price fields become ``None`` so the validator can report them.
        """

        def pick(long_key: str, short_key: str) -> Any:
            if long_key in data:
                return data[long_key]
            return data.get(short_key)

        return cls(
            timestamp=pick("timestamp", "t"),
            open=pick("open", "o"),
            high=pick("high", "h"),
            low=pick("low", "l"),
            close=pick("close", "c"),
            volume=pick("volume", "v"),
            ema7=data.get("ema7") or 0.0,
            ema20=data.get("ema20") or 0.0,
            ema50=data.get("ema50") or 0.0,
            ema100=data.get("ema100") or 0.0,
            rsi14=data.get("rsi14") or 0.0,
            atr14=data.get("atr14") or 0.0,
            interpolated=bool(data.get("interpolated", False)),
        )
