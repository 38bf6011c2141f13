"""Trading calendar service using the exchange_calendars library.

This module provides the market-calendar collaborator used by the candle
integrity validator for gap filtering, the market-hours filter and
interpolation of missing daily candles.

Key pieces:
- MarketCalendar: protocol any calendar implementation must satisfy
- ExchangeMarketCalendar: exchange_calendars-backed implementation (XNYS by default)
- WeekdayMarketCalendar: holiday-free Monday-Friday calendar for offline use
- get_market_calendar: cached default calendar from settings

Exchange calendars are cached using lru_cache to minimize overhead when the
validator checks many timestamps in a row.
"""

import logging
from datetime import date, datetime, time, timezone
from functools import lru_cache
from typing import Protocol
from zoneinfo import ZoneInfo

import exchange_calendars as xcals
from exchange_calendars.errors import DateOutOfBounds

from pattern_scanner.core.config import get_settings

logger = logging.getLogger(__name__)

EASTERN = ZoneInfo("US/Eastern")
REGULAR_OPEN = time(9, 30)
REGULAR_CLOSE = time(16, 0)


class MarketCalendar(Protocol):
    """Market calendar collaborator interface."""

    def is_trading_day(self, check_date: date) -> bool:
        """Whether the exchange holds a session on this date."""
        ...

    def is_market_open(self, timestamp: datetime) -> bool:
        """Whether the exchange is in its regular session at this instant."""
        ...


@lru_cache(maxsize=4)
def get_exchange_calendar(code: str = "XNYS") -> xcals.ExchangeCalendar:
    """Get an exchange calendar (cached).

    Args:
        code: exchange_calendars code, e.g. "XNYS"

    Returns:
        ExchangeCalendar: exchange calendar instance
    """
    return xcals.get_calendar(code)


def _to_eastern(timestamp: datetime) -> datetime:
    """Convert timestamp to US/Eastern timezone.

    Args:
        timestamp: The datetime to convert (will be treated as UTC if naive)

    Returns:
        Datetime converted to US/Eastern timezone
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(EASTERN)


class ExchangeMarketCalendar:
    """Market calendar backed by exchange_calendars sessions.

    Uses actual session times, so early-close days (e.g., 1:00 PM ET on the
    day after Thanksgiving) are handled. Dates outside the calendar's bounds
    fall back to a plain weekday check.
    """

    def __init__(self, code: str = "XNYS") -> None:
        self.code = code
        self._calendar = get_exchange_calendar(code)

    def is_trading_day(self, check_date: date) -> bool:
        try:
            return bool(self._calendar.is_session(check_date.isoformat()))
        except DateOutOfBounds:
            logger.debug(
                "Date %s outside %s calendar bounds, using weekday rule",
                check_date,
                self.code,
            )
            return check_date.weekday() < 5

    def is_market_open(self, timestamp: datetime) -> bool:
        eastern_time = _to_eastern(timestamp)
        trading_date = eastern_time.date()

        if not self.is_trading_day(trading_date):
            return False

        try:
            session_open = self._calendar.session_open(trading_date.isoformat())
            session_close = self._calendar.session_close(trading_date.isoformat())
        except DateOutOfBounds:
            return REGULAR_OPEN <= eastern_time.time() < REGULAR_CLOSE

        # session_open/close are UTC Timestamps
        market_open = _to_eastern(session_open.to_pydatetime())
        market_close = _to_eastern(session_close.to_pydatetime())
        return market_open <= eastern_time < market_close


class WeekdayMarketCalendar:
    """Monday-Friday calendar with regular 9:30-16:00 ET hours and no holidays."""

    def is_trading_day(self, check_date: date) -> bool:
        return check_date.weekday() < 5

    def is_market_open(self, timestamp: datetime) -> bool:
        eastern_time = _to_eastern(timestamp)
        if not self.is_trading_day(eastern_time.date()):
            return False
        return REGULAR_OPEN <= eastern_time.time() < REGULAR_CLOSE


@lru_cache(maxsize=1)
def get_market_calendar() -> MarketCalendar:
    """Get the default market calendar configured in settings (cached).

    Returns:
        MarketCalendar for the configured exchange
    """
    return ExchangeMarketCalendar(get_settings().exchange_calendar)
