"""Structured logging for scan and backtest batches.

The batch scanner emits JSON events for each batch and each unit outcome.
``scan_id`` is bound for the whole run and symbol/timeframe for each unit
through structlog contextvars, so events logged while a unit is analyzed
carry both.
"""
import logging
import sys

import structlog

from pattern_scanner.core.config import get_settings


def configure_structured_logging(log_level: str | None = None) -> None:
    """Configure structured logging for the scanner.

    Sets up structlog with:
    - JSON rendering with ISO UTC timestamps
    - Context variables merged into every event
    - Log level filtering

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to the configured ``log_level`` setting.
    """
    level_name = (log_level or get_settings().log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        BoundLogger instance for structured logging
    """
    return structlog.get_logger(name)


def bind_scan_context(**context: object) -> None:
    """Attach key/value context (e.g. scan_id, symbol) to later events."""
    structlog.contextvars.bind_contextvars(**context)


def clear_scan_context() -> None:
    """Drop all bound scan context."""
    structlog.contextvars.clear_contextvars()


def scan_unit_context(symbol: str, timeframe: str):
    """Bind symbol/timeframe for the duration of one unit.

    Returns a context manager that restores the previous bindings on exit,
    so the batch-level ``scan_id`` survives while unit keys do not leak.
    """
    return structlog.contextvars.bound_contextvars(symbol=symbol, timeframe=timeframe)
