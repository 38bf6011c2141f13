"""Core exception classes for the Pattern Scanner package."""


class ScannerError(Exception):
    """Base exception for pattern scanner operations."""

    pass


class DataProviderError(ScannerError):
    """Raised when an external market data provider fails."""

    pass


class DataValidationError(ScannerError):
    """Raised when candle data cannot be used by a downstream stage."""

    pass


class InvalidTimeframeError(ScannerError):
    """Raised when a timeframe string is not recognised."""

    pass
