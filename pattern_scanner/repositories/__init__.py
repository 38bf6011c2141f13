"""Persistence interface for pattern detections and backtest results."""

from .base import InMemoryPatternStore
from .base import PatternStoreInterface
