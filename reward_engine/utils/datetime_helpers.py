"""
Standardized Date/Time Handling Utilities

This module provides the clock used by the engine and the helpers that keep
date handling consistent:
1. All timestamps are timezone-aware
2. Streak days are compared as calendar days in the clock's timezone
3. Persisted timestamps use ISO-8601 text, which sorts chronologically

CRITICAL RULES:
- Never call datetime.now() inside business logic, take a Clock instead
- Never mix naive and aware datetimes
"""

import logging
from datetime import datetime, date, timedelta
from typing import Optional, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

# Default timezone if none is configured
DEFAULT_TIMEZONE = "UTC"


class Clock(Protocol):
    """Anything that can tell the current (timezone-aware) time"""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in a fixed timezone"""

    def __init__(self, tz_name: Optional[str] = None):
        self.tz = get_timezone(tz_name or DEFAULT_TIMEZONE)

    def now(self) -> datetime:
        return datetime.now(self.tz)


def get_timezone(tz_name: str) -> ZoneInfo:
    """
    Resolve a timezone name, falling back to UTC

    Args:
        tz_name: IANA timezone name (e.g. "Europe/London")

    Returns:
        ZoneInfo object for the timezone
    """
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.error(f"Invalid timezone '{tz_name}': {e}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def ensure_aware(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=ZoneInfo("UTC"))
    return dt


def local_day(dt: datetime, reference: datetime) -> date:
    """
    Calendar day of dt, as seen in the timezone of reference

    Args:
        dt: Timestamp to convert
        reference: Timestamp whose timezone defines "local"

    Returns:
        The local calendar date
    """
    reference = ensure_aware(reference)
    return ensure_aware(dt).astimezone(reference.tzinfo).date()


def days_between(earlier: datetime, later: datetime) -> int:
    """Number of local calendar days from earlier to later (later's timezone)"""
    return (local_day(later, later) - local_day(earlier, later)).days


def add_days(dt: datetime, days: int) -> datetime:
    return dt + timedelta(days=days)


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Format a timestamp for storage"""
    if dt is None:
        return None
    return ensure_aware(dt).isoformat()


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a stored ISO-8601 timestamp

    Returns:
        Aware datetime, or None when value is empty

    Raises:
        ValueError: If value is not a valid ISO-8601 timestamp
    """
    if not value:
        return None
    return ensure_aware(datetime.fromisoformat(value))
