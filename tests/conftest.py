"""Shared pytest fixtures for pattern scanner tests."""
import pytest

from pattern_scanner.core.config import Settings
from pattern_scanner.services.trading_calendar_service import WeekdayMarketCalendar
from pattern_scanner.validation.integrity import CandleIntegrityValidator
from tests.utils.candle_factory import FIXED_NOW_MS


@pytest.fixture
def weekday_calendar() -> WeekdayMarketCalendar:
    """Holiday-free calendar so tests never depend on exchange data."""
    return WeekdayMarketCalendar()


@pytest.fixture
def validator(weekday_calendar: WeekdayMarketCalendar) -> CandleIntegrityValidator:
    """Validator with a fixed clock and the weekday calendar."""
    return CandleIntegrityValidator(
        calendar=weekday_calendar, clock=lambda: FIXED_NOW_MS
    )


@pytest.fixture
def test_settings() -> Settings:
    """Settings with surfacing thresholds disabled and no batch delay."""
    return Settings(
        log_level="WARNING",
        confidence_threshold=0.0,
        profit_threshold=0.0,
        scan_batch_size=2,
        scan_batch_delay=0.0,
        min_candles_for_analysis=20,
        scan_lookback_candles=60,
    )


def pytest_configure(config):
    """Configure pytest with custom markers.

    Args:
        config: Pytest configuration
    """
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
