"""Unit tests for scanner configuration.

Tests the Settings class in pattern_scanner.core.config, ensuring defaults
match the detection and backtest model and that environment overrides apply.
"""
from pattern_scanner.core.config import Settings, get_settings


class TestSettingsDefaults:
    """Tests for Settings default values."""

    def test_threshold_defaults(self) -> None:
        settings = Settings()
        assert settings.confidence_threshold == 80.0
        assert settings.profit_threshold == 5.0
        assert settings.multi_timeframe_boost == 10.0

    def test_backtest_defaults(self) -> None:
        settings = Settings()
        assert settings.backtest_lookahead == 20
        assert settings.full_history_lookahead == 30
        assert settings.min_forward_candles == 20

    def test_batch_defaults(self) -> None:
        settings = Settings()
        assert settings.scan_batch_size == 5
        assert settings.scan_batch_delay == 1.0
        assert settings.min_candles_for_analysis == 30
        assert settings.exchange_calendar == "XNYS"

    def test_environment_override(self, monkeypatch) -> None:
        """SCANNER_ prefixed variables override defaults."""
        monkeypatch.setenv("SCANNER_CONFIDENCE_THRESHOLD", "70")
        monkeypatch.setenv("SCANNER_EXCHANGE_CALENDAR", "XLON")

        settings = Settings()

        assert settings.confidence_threshold == 70.0
        assert settings.exchange_calendar == "XLON"

    def test_unknown_variables_ignored(self, monkeypatch) -> None:
        """SCANNER_ variables without a matching field are ignored."""
        monkeypatch.setenv("SCANNER_ENVIRONMENT", "production")

        settings = Settings()

        assert not hasattr(settings, "environment")
        assert not hasattr(settings, "is_production")


class TestGetSettings:
    """Tests for get_settings() function."""

    def test_get_settings_returns_settings_instance(self) -> None:
        get_settings.cache_clear()
        settings = get_settings()
        assert isinstance(settings, Settings)

    def test_get_settings_is_cached(self) -> None:
        get_settings.cache_clear()
        settings1 = get_settings()
        settings2 = get_settings()
        assert settings1 is settings2
