"""
Family-local time helpers.

All schedule arithmetic runs on the family's local calendar day. Aware datetimes
(as stored in Postgres) are converted into the family's timezone and then made
naive, so the engine compares plain wall-clock values. Naive datetimes are
assumed to already be local.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

from core.config import settings


def get_timezone(tz_name: Optional[str]):
    """Return a pytz timezone, falling back to the configured default on bad names."""
    try:
        return pytz.timezone(tz_name or settings.DEFAULT_TIMEZONE)
    except pytz.UnknownTimeZoneError:
        return pytz.timezone(settings.DEFAULT_TIMEZONE)


def to_local(value: Optional[datetime], tz_name: Optional[str] = None) -> Optional[datetime]:
    """Convert a datetime to naive family-local wall-clock time."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(get_timezone(tz_name)).replace(tzinfo=None)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def parse_hhmm(value: Optional[str]) -> Optional[time]:
    """Parse "HH:MM" (or "HH:MM:SS"); returns None for empty or malformed input."""
    if not value:
        return None
    parts = str(value).strip().split(":")
    try:
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 else 0
        return time(hour, minute)
    except (ValueError, IndexError):
        return None


def format_hhmm(value) -> str:
    """Format a time or datetime as a 24-hour "HH:MM" string."""
    return value.strftime("%H:%M")


def daterange(start: date, end: date):
    """Yield each date in the inclusive range [start, end]."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
