"""
Timezone helpers for per-user calendar days.

All functions take an explicit ``now`` (timezone-aware) so callers control the
clock; it defaults to the current UTC time.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

import pytz

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"
DATE_FORMAT = "%Y-%m-%d"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_timezone(name: Optional[str]) -> bool:
    """Check whether ``name`` is a known IANA timezone."""
    if not name:
        return False
    try:
        pytz.timezone(name)
        return True
    except pytz.UnknownTimeZoneError:
        return False


def resolve_timezone(name: Optional[str]):
    """
    Get a pytz timezone, falling back to UTC.

    Args:
        name: IANA timezone name, may be empty

    Returns:
        pytz timezone object
    """
    if not name:
        return pytz.timezone(DEFAULT_TIMEZONE)
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Unknown timezone {name!r}, falling back to {DEFAULT_TIMEZONE}")
        return pytz.timezone(DEFAULT_TIMEZONE)


def local_now(tz_name: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Current wall-clock time in the given timezone."""
    now = now or _utcnow()
    return now.astimezone(resolve_timezone(tz_name))


def local_date_string(tz_name: Optional[str], now: Optional[datetime] = None) -> str:
    """Current calendar date in the timezone, as YYYY-MM-DD."""
    return local_now(tz_name, now).strftime(DATE_FORMAT)


def is_local_midnight(tz_name: Optional[str], now: Optional[datetime] = None) -> bool:
    """True when the local wall clock reads 00:00 (minute resolution)."""
    current = local_now(tz_name, now)
    return current.hour == 0 and current.minute == 0


def previous_date_string(date_str: str) -> str:
    """The calendar day before ``date_str`` (YYYY-MM-DD)."""
    day = datetime.strptime(date_str, DATE_FORMAT).date()
    return (day - timedelta(days=1)).strftime(DATE_FORMAT)


def local_day_bounds(date_str: str, tz_name: Optional[str]) -> Tuple[datetime, datetime]:
    """
    UTC bounds of a local calendar day.

    Returns the half-open interval ``[start, end)`` where ``start`` is local
    00:00 of ``date_str`` and ``end`` is local 00:00 of the following day.
    Days shortened or lengthened by DST transitions are handled by pytz.
    """
    tz = resolve_timezone(tz_name)
    day = datetime.strptime(date_str, DATE_FORMAT).date()
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def as_date_string(value) -> Optional[str]:
    """
    Normalise a stored calendar-day marker to YYYY-MM-DD.

    Accepts strings, dates and datetimes (older documents stored a UTC
    datetime at midnight).
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime(DATE_FORMAT)
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    return str(value)[:10]
