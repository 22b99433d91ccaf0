from __future__ import annotations

from datetime import time
import re

_HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_hhmm(value: str) -> time:
    """
    Parse a wall-clock ``HH:MM`` string.

    Raises:
        ValueError: if the string is not a valid 24-hour time.
    """
    match = _HHMM_PATTERN.match((value or "").strip())
    if not match:
        raise ValueError(f"invalid time of day: {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


def time_to_minutes(t: time, *, is_end_time: bool = False) -> int:
    """
    Convert time to minutes since midnight.

    Args:
        t: Time object.
        is_end_time: If True, treat time(0, 0) as 1440 (end of day).

    Returns:
        Minutes since midnight (0-1440).
    """
    minutes = t.hour * 60 + t.minute
    if is_end_time and minutes == 0:
        return 24 * 60
    return minutes
