"""Pattern detection and backtest record types.

PatternDetection and BacktestResult are the durable records handed to the
persistence collaborator. Both are frozen: the scorer and the multi-timeframe
confirmation step produce updated copies instead of mutating detections.
"""
import uuid
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from datetime import timezone
from enum import Enum
from typing import Any


class PatternType(str, Enum):
    """Chart pattern families emitted by the detector."""

    BULL_FLAG = "Bull Flag"
    BEAR_FLAG = "Bear Flag"
    ASCENDING_TRIANGLE = "Ascending Triangle"
    DESCENDING_TRIANGLE = "Descending Triangle"
    CHANNEL = "Channel"


class Direction(str, Enum):
    """Expected breakout direction of a pattern."""

    BULLISH = "bullish"
    BEARISH = "bearish"


class ChannelType(str, Enum):
    """Channel classification from the regression slopes of highs and lows."""

    ASCENDING = "ascending"
    DESCENDING = "descending"
    HORIZONTAL = "horizontal"


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class PatternDetection:
    """A detected chart pattern with its implied trade.

    Attributes:
        symbol: Ticker the pattern was found on
        pattern_type: Pattern family
        direction: Expected breakout direction
        timeframe: Candle timeframe string (e.g., "1d")
        entry_price: Breakout entry level
        target_price: Projected target
        stop_loss: Invalidation level
        risk_reward_ratio: Reward over risk, always >= the detector minimum
        potential_profit_percent: Distance from entry to target in percent
        detected_at: Open time of the last candle in the pattern window
        candle_index: Index of that candle in the analyzed series
        support_level: Lower boundary used by the backtest trigger
        resistance_level: Upper boundary used by the backtest trigger
        confidence_score: 0-100, filled by the confidence scorer
        channel_type: Set for channel detections only
        volume_confirmation: Whether volume supported the setup, when known
        multi_timeframe_confirmed: Set by the confirmation step
        confirming_timeframe: Lower timeframe that confirmed the setup
        id: Stable identifier shared with the backtest result
    """

    symbol: str
    pattern_type: PatternType
    direction: Direction
    timeframe: str
    entry_price: float
    target_price: float
    stop_loss: float
    risk_reward_ratio: float
    potential_profit_percent: float
    detected_at: datetime
    candle_index: int
    support_level: float
    resistance_level: float
    confidence_score: float = 0.0
    channel_type: ChannelType | None = None
    volume_confirmation: bool | None = None
    multi_timeframe_confirmed: bool = False
    confirming_timeframe: str | None = None
    id: str = field(default_factory=_new_id)

    @property
    def is_bullish(self) -> bool:
        return self.direction == Direction.BULLISH

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the persistence collaborator."""
        return {
            "id": self.id,
            "symbol": self.symbol,
            "pattern_type": self.pattern_type.value,
            "direction": self.direction.value,
            "timeframe": self.timeframe,
            "entry_price": self.entry_price,
            "target_price": self.target_price,
            "stop_loss": self.stop_loss,
            "risk_reward_ratio": self.risk_reward_ratio,
            "potential_profit_percent": self.potential_profit_percent,
            "confidence_score": self.confidence_score,
            "detected_at": self.detected_at.isoformat(),
            "support_level": self.support_level,
            "resistance_level": self.resistance_level,
            "channel_type": self.channel_type.value if self.channel_type else None,
            "volume_confirmation": self.volume_confirmation,
            "multi_timeframe_confirmed": self.multi_timeframe_confirmed,
            "confirming_timeframe": self.confirming_timeframe,
        }


@dataclass(frozen=True)
class BacktestResult:
    """Outcome of replaying one detection against its forward candles.

    Carries a copy of the detection fields needed for aggregation so that
    summaries never have to join back to the detection records.
    """

    pattern_id: str
    success: bool
    profit_loss_percent: float
    candles_to_breakout: int
    entry_price: float
    exit_price: float
    symbol: str
    timeframe: str
    pattern_type: PatternType
    detected_at: datetime
    confidence_score: float = 0.0
    risk_reward_ratio: float = 0.0
    multi_timeframe_confirmed: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the persistence collaborator."""
        return {
            "pattern_id": self.pattern_id,
            "success": self.success,
            "profit_loss_percent": self.profit_loss_percent,
            "candles_to_breakout": self.candles_to_breakout,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class BacktestSummary:
    """Aggregate statistics over a group of backtest results.

    Percentages (success_rate, avg_win, avg_loss, P/L) are expressed in
    percent units, e.g. 62.5 for 62.5%.
    """

    timeframe: str
    pattern_type: str | None = None
    total_patterns: int = 0
    successful_patterns: int = 0
    failed_patterns: int = 0
    success_rate: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    risk_reward_ratio: float = 0.0
    max_win_streak: int = 0
    max_loss_streak: int = 0
    consistency_score: float = 0.0
    avg_candles_to_breakout: float = 0.0
    avg_confidence_score: float = 0.0
    avg_profit_loss_percent: float = 0.0
    max_profit: float = 0.0
    max_loss: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for reporting."""
        return {
            "timeframe": self.timeframe,
            "pattern_type": self.pattern_type,
            "total_patterns": self.total_patterns,
            "successful_patterns": self.successful_patterns,
            "failed_patterns": self.failed_patterns,
            "success_rate": self.success_rate,
            "avg_win": self.avg_win,
            "avg_loss": self.avg_loss,
            "risk_reward_ratio": self.risk_reward_ratio,
            "max_win_streak": self.max_win_streak,
            "max_loss_streak": self.max_loss_streak,
            "consistency_score": self.consistency_score,
            "avg_candles_to_breakout": self.avg_candles_to_breakout,
            "avg_confidence_score": self.avg_confidence_score,
            "avg_profit_loss_percent": self.avg_profit_loss_percent,
            "max_profit": self.max_profit,
            "max_loss": self.max_loss,
        }
