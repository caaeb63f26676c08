"""
Date and Time utilities

This module handles timestamp parsing, the run clock, and the display formats
used in digests. All "what day is it" questions go through a Clock so that
callers can pin the current instant.
"""
from collections.abc import Callable
from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo
import logging

from tzlocal import get_localzone

logger = logging.getLogger(__name__)

DATE_FORMAT = "%a. %b. %d"


class DateFormatError(ValueError):
    """Raised when date format is invalid"""
    pass


def _normalize_iso8601_string(date_str: str) -> str:
    """Normalize ISO8601 string by replacing 'Z' with '+00:00'

    Args:
        date_str: ISO8601 datetime string

    Returns:
        Normalized string with explicit timezone offset
    """
    return date_str.replace('Z', '+00:00') if date_str.endswith('Z') else date_str


def parse_rfc3339(date_str: str) -> datetime:
    """
    Parse an RFC 3339 timestamp into a timezone-aware datetime

    Args:
        date_str: Timestamp string (e.g., '2025-10-09T00:00:00Z' or '2025-10-09T20:00:00-04:00')

    Returns:
        Timezone-aware datetime keeping the original offset

    Raises:
        DateFormatError: If the string is not a valid timestamp with an offset
    """
    try:
        dt = datetime.fromisoformat(_normalize_iso8601_string(date_str))
    except (ValueError, AttributeError, TypeError) as e:
        raise DateFormatError(f"Invalid RFC 3339 timestamp: '{date_str}'") from e

    if dt.tzinfo is None:
        raise DateFormatError(f"RFC 3339 timestamp lacks a UTC offset: '{date_str}'")
    return dt


def resolve_timezone(name: str | None) -> tzinfo:
    """
    Resolve a configured timezone name

    Args:
        name: IANA name, 'UTC', or None for the system local timezone

    Returns:
        tzinfo instance; the local zone follows DST transitions
    """
    if name is None:
        return get_localzone()
    if name == "UTC":
        return timezone.utc
    return ZoneInfo(name)


class Clock:
    """Source of the current instant in the digest's local timezone."""

    def __init__(
        self,
        tz: tzinfo | None = None,
        now_func: Callable[[], datetime] | None = None,
    ) -> None:
        self.tz = tz or resolve_timezone(None)
        self._now_func = now_func

    @classmethod
    def fixed(cls, instant: datetime) -> "Clock":
        """Clock frozen at an aware instant, in that instant's timezone."""
        if instant.tzinfo is None:
            raise ValueError("Fixed clock instant must be timezone-aware")
        return cls(instant.tzinfo, lambda: instant)

    def now(self) -> datetime:
        if self._now_func is not None:
            return self._now_func().astimezone(self.tz)
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def localize(self, dt: datetime) -> datetime:
        """Convert an aware datetime to the clock's timezone."""
        return dt.astimezone(self.tz)


def format_show_time(dt: datetime) -> str:
    """Format an air time as 'Sun. Oct. 18 8:00 PM'."""
    hour = dt.hour % 12 or 12
    return f"{dt.strftime(DATE_FORMAT)} {hour}:{dt.strftime('%M %p')}"


def format_day(day: date) -> str:
    """Format a calendar day as 'Sun. Oct. 18'."""
    return day.strftime(DATE_FORMAT)
