"""Unit tests for structured logging configuration."""
import json

import pytest
import structlog

from pattern_scanner.utils.structured_logging import (
    bind_scan_context,
    clear_scan_context,
    configure_structured_logging,
    get_logger,
    scan_unit_context,
)


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    clear_scan_context()
    structlog.reset_defaults()


@pytest.mark.unit
class TestStructuredLogging:
    """Tests for JSON event output and bound scan context."""

    def test_events_rendered_as_json_with_context(self, capsys):
        configure_structured_logging("INFO")
        bind_scan_context(scan_id="abc123")

        get_logger("tests").info("scan_batch_started", batch=1, units=3)

        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "scan_batch_started"
        assert event["scan_id"] == "abc123"
        assert event["batch"] == 1
        assert event["level"] == "info"
        assert "timestamp" in event

    def test_level_filtering(self, capsys):
        configure_structured_logging("WARNING")

        get_logger("tests").info("ignored")
        get_logger("tests").warning("kept")

        output = capsys.readouterr().out
        assert "ignored" not in output
        assert "kept" in output

    def test_cleared_context_not_rendered(self, capsys):
        configure_structured_logging("INFO")
        bind_scan_context(scan_id="abc123")
        clear_scan_context()

        get_logger("tests").info("scan_completed")

        event = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert "scan_id" not in event

    def test_unit_context_restored_on_exit(self, capsys):
        """Unit keys are rendered inside the block and dropped after it."""
        configure_structured_logging("INFO")
        bind_scan_context(scan_id="abc123")

        with scan_unit_context("AAPL", "1d"):
            get_logger("tests").info("scan_unit_analyzed")
        get_logger("tests").info("scan_completed")

        lines = capsys.readouterr().out.strip().splitlines()
        inside, after = (json.loads(line) for line in lines[-2:])
        assert inside["symbol"] == "AAPL"
        assert inside["timeframe"] == "1d"
        assert inside["scan_id"] == "abc123"
        assert "symbol" not in after
        assert after["scan_id"] == "abc123"
