"""
Timezone utilities for the booking backend.

Working hours are declared in the business timezone from settings and
converted to absolute UTC instants here. Nothing in this module depends on
the timezone of the running process.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

import pytz

from .exceptions import ValidationException


def get_business_timezone(tz_name: str) -> pytz.BaseTzInfo:
    """Return the pytz timezone object for a configured IANA name."""
    return pytz.timezone(tz_name)


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to aware UTC.

    Naive values are assumed to already be UTC, which is how every
    timestamp is persisted.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def localize(day: date, at: time, tz_name: str) -> datetime:
    """Interpret a wall-clock time on a date in the business timezone, returned in UTC."""
    tz = get_business_timezone(tz_name)
    local_dt = tz.localize(datetime.combine(day, at))
    return local_dt.astimezone(timezone.utc)


def local_window_to_utc(
    day: date, start: time, end: time, tz_name: str
) -> Tuple[datetime, datetime]:
    """
    Convert a working-hours window on a local date to UTC instants.

    Args:
        day: Calendar date in the business timezone
        start: Opening wall-clock time
        end: Closing wall-clock time
        tz_name: Business timezone name

    Returns:
        (window_start_utc, window_end_utc)
    """
    return localize(day, start, tz_name), localize(day, end, tz_name)


def business_day_bounds(day: date, tz_name: str) -> Tuple[datetime, datetime]:
    """UTC half-open bounds of a whole local calendar day."""
    start = localize(day, time(0, 0), tz_name)
    end = localize(day + timedelta(days=1), time(0, 0), tz_name)
    return start, end


def to_business_time(dt: datetime, tz_name: str) -> datetime:
    """Convert an instant to the business timezone for display."""
    tz = get_business_timezone(tz_name)
    return ensure_utc(dt).astimezone(tz)


def parse_iso_date(value: str) -> date:
    """Parse a YYYY-MM-DD string, raising ValidationException on bad input."""
    try:
        return date.fromisoformat(value.strip())
    except (ValueError, AttributeError) as exc:
        raise ValidationException(
            "Invalid date, expected YYYY-MM-DD", details={"date": value}
        ) from exc


def parse_hhmm(value: str) -> time:
    """Parse an HH:MM working-hours string."""
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except (ValueError, AttributeError) as exc:
        raise ValidationException(
            "Invalid time, expected HH:MM", details={"time": value}
        ) from exc
