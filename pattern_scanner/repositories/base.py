"""Persistence interface for detections and backtest results.

The scanner hands durable records to a store implementing
PatternStoreInterface. Storage technology is the caller's concern; the
in-memory store here backs tests and one-off scripts.
"""
import logging
from abc import ABC, abstractmethod

from pattern_scanner.models.pattern import BacktestResult
from pattern_scanner.models.pattern import PatternDetection

logger = logging.getLogger(__name__)


class PatternStoreInterface(ABC):
    """Abstract sink for pattern detections and backtest results."""

    @abstractmethod
    async def save_pattern(self, detection: PatternDetection) -> None:
        """Persist one detection."""
        pass

    @abstractmethod
    async def save_backtest_result(self, result: BacktestResult) -> None:
        """Persist one backtest result."""
        pass


class InMemoryPatternStore(PatternStoreInterface):
    """Keeps records in lists, keyed by nothing; duplicates are kept."""

    def __init__(self) -> None:
        self.patterns: list[PatternDetection] = []
        self.backtest_results: list[BacktestResult] = []

    async def save_pattern(self, detection: PatternDetection) -> None:
        self.patterns.append(detection)
        logger.debug(f"Stored {detection.pattern_type.value} for {detection.symbol}")

    async def save_backtest_result(self, result: BacktestResult) -> None:
        self.backtest_results.append(result)
