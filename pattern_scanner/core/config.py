"""Configuration management using Pydantic v2 settings.
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Scanner settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SCANNER_",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")

    # Surfacing thresholds
    confidence_threshold: float = Field(
        default=80.0,
        description="Minimum confidence score for a detection to be surfaced",
    )
    profit_threshold: float = Field(
        default=5.0,
        description="Minimum potential profit percent for a detection to be surfaced",
    )

    # Multi-timeframe confirmation
    multi_timeframe_boost: float = Field(
        default=10.0,
        description="Flat confidence boost applied when the lower timeframe confirms",
    )

    # Backtesting
    backtest_lookahead: int = Field(
        default=20,
        description="Forward candles scanned when backtesting a detection",
    )
    full_history_lookahead: int = Field(
        default=30,
        description="Forward candles scanned by the full-history backtest variant",
    )
    min_forward_candles: int = Field(
        default=20,
        description="Minimum forward candles required for a detection to be backtestable",
    )

    # Batch fan-out
    scan_batch_size: int = Field(
        default=5, description="Number of symbols fetched and analyzed concurrently"
    )
    scan_batch_delay: float = Field(
        default=1.0,
        description="Delay between batches in seconds to respect upstream rate limits",
    )
    min_candles_for_analysis: int = Field(
        default=30,
        description="Series shorter than this are skipped by the batch scanner",
    )
    scan_lookback_candles: int = Field(
        default=200,
        description="Number of candles requested per symbol and timeframe",
    )

    # Market calendar
    exchange_calendar: str = Field(
        default="XNYS", description="exchange_calendars code used for trading days"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Scanner settings
    """
    return Settings()
