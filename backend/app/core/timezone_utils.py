"""
Timezone utilities for the booking core.

Mentor schedules are wall-clock ``HH:MM`` strings in the mentor's own
timezone; bookings and slots are timezone-aware UTC instants. Every
conversion between the two goes through this module.
"""

from datetime import date, datetime, time, timedelta
from typing import Tuple

import pytz

DEFAULT_TIMEZONE = "UTC"


def get_timezone(tz_name: str | None) -> pytz.BaseTzInfo:
    """
    Resolve an IANA timezone name, falling back to UTC for unknown names.

    Args:
        tz_name: Timezone name such as ``Asia/Kolkata``

    Returns:
        pytz timezone object
    """
    try:
        return pytz.timezone(tz_name or DEFAULT_TIMEZONE)
    except pytz.UnknownTimeZoneError:
        return pytz.UTC


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def local_to_utc(day: date, wall_clock: time, tz_name: str | None) -> datetime:
    """
    Convert a wall-clock time on ``day`` in ``tz_name`` to a UTC instant.

    Args:
        day: Calendar date in the mentor's timezone
        wall_clock: Time of day in the mentor's timezone
        tz_name: Mentor's timezone name

    Returns:
        Aware UTC datetime
    """
    tz = get_timezone(tz_name)
    local = tz.localize(datetime.combine(day, wall_clock))
    return local.astimezone(pytz.UTC)


def local_day_bounds_utc(day: date, tz_name: str | None) -> Tuple[datetime, datetime]:
    """
    Return the UTC instants bounding ``day`` in the mentor's timezone.

    The end bound is exclusive (midnight of the following day).
    """
    start = local_to_utc(day, time(0, 0), tz_name)
    end = local_to_utc(day + timedelta(days=1), time(0, 0), tz_name)
    return start, end


def local_today(now: datetime, tz_name: str | None) -> date:
    """Calendar date of ``now`` in the given timezone."""
    return ensure_utc(now).astimezone(get_timezone(tz_name)).date()


def to_iso_utc(dt: datetime) -> str:
    """Format an instant as ISO-8601 UTC with a ``Z`` suffix."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%S.000Z")
