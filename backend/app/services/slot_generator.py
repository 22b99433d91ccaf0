# backend/app/services/slot_generator.py
"""
Slot generation from a mentor's recurring weekly schedule.

``generate_slots`` is a pure function: given the same schedule, date,
durations, rate and ``now`` it returns the same list in the same order.
It does no I/O; callers that want to hear about skipped intervals pass a
``SlotObserver``.

Rules:
- past dates (before today in the mentor's timezone) yield nothing
- an unavailable day, or a day without intervals, yields nothing
- each interval is cut into back-to-back windows per duration, starting
  at the interval start; windows starting before ``now + lead time`` or
  ending after the interval end are dropped
- malformed intervals are skipped individually
- output is sorted by start time, then duration, and is not deduplicated
  across durations
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from ..core.timezone_utils import ensure_utc, local_to_utc, local_today
from ..domain.availability import CandidateSlot, TimeInterval, WeeklyAvailability, Weekday
from ..utils.time_utils import parse_hhmm, time_to_minutes

logger = logging.getLogger(__name__)

MIN_LEAD_TIME = timedelta(hours=2)
DEFAULT_SESSION_TYPE = "video"


class SlotObserver(Protocol):
    def interval_skipped(self, interval: TimeInterval, reason: str) -> None:
        ...


class LoggingSlotObserver:
    """Reports skipped intervals to the module logger."""

    def __init__(self, mentor_id: str):
        self.mentor_id = mentor_id

    def interval_skipped(self, interval: TimeInterval, reason: str) -> None:
        logger.warning(
            "Skipping malformed availability interval",
            extra={
                "mentor_id": self.mentor_id,
                "interval_id": interval.id,
                "start_time": interval.start_time,
                "end_time": interval.end_time,
                "reason": reason,
            },
        )


def calculate_price(hourly_rate: Union[int, float, Decimal], duration: int) -> int:
    """Price of a session: hourly rate pro-rated to ``duration``, rounded half up."""
    amount = Decimal(str(hourly_rate)) * Decimal(duration) / Decimal(60)
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def local_slot_id(mentor_id: str, start: datetime, duration: int) -> str:
    """Stable id for a locally generated slot."""
    epoch_ms = int(ensure_utc(start).timestamp() * 1000)
    return f"local-{mentor_id}-{epoch_ms}-{duration}"


def _interval_minutes(interval: TimeInterval) -> Tuple[int, int]:
    """
    Parse an interval into minutes since local midnight.

    ``24:00`` and ``00:00`` as an end time mean end of day.

    Raises:
        ValueError: unparseable times or start >= end
    """
    start = time_to_minutes(parse_hhmm(interval.start_time))
    raw_end = (interval.end_time or "").strip()
    end = 24 * 60 if raw_end == "24:00" else time_to_minutes(parse_hhmm(raw_end), is_end_time=True)
    if start >= end:
        raise ValueError("start must be before end")
    return start, end


def _normalize_durations(session_durations: Iterable[int]) -> List[int]:
    return sorted({int(d) for d in session_durations if int(d) > 0})


def _local_instant(day: date, minutes: int, tz_name: Optional[str]) -> datetime:
    if minutes >= 24 * 60:
        return local_to_utc(day + timedelta(days=1), time(0, 0), tz_name)
    return local_to_utc(day, time(minutes // 60, minutes % 60), tz_name)


def generate_slots(
    weekly_availability: WeeklyAvailability,
    target_date: date,
    session_durations: Sequence[int],
    hourly_rate: Union[int, float, Decimal],
    now: datetime,
    *,
    mentor_id: str,
    tz_name: Optional[str] = "UTC",
    session_type: str = DEFAULT_SESSION_TYPE,
    min_lead_time: timedelta = MIN_LEAD_TIME,
    observer: Optional[SlotObserver] = None,
) -> List[CandidateSlot]:
    """
    Expand one day of a weekly schedule into bookable slots.

    Args:
        weekly_availability: The mentor's recurring schedule
        target_date: Calendar date in the mentor's timezone
        session_durations: Supported session lengths in minutes
        hourly_rate: Mentor's hourly rate
        now: Current instant (aware or naive UTC)
        mentor_id: Used to build stable slot ids
        tz_name: Mentor's IANA timezone; schedule times are read in it
        session_type: Modality stamped on every slot
        min_lead_time: Earliest allowed gap between ``now`` and a slot start
        observer: Optional sink for skipped intervals

    Returns:
        Slots sorted by (start_time, duration)
    """
    now_utc = ensure_utc(now)
    if target_date < local_today(now_utc, tz_name):
        return []

    day = weekly_availability.for_day(Weekday.from_date(target_date))
    if not day.is_available or not day.time_slots:
        return []

    durations = _normalize_durations(session_durations)
    if not durations:
        return []

    earliest_start = now_utc + min_lead_time
    slots: List[CandidateSlot] = []

    for interval in day.time_slots:
        try:
            start_minutes, end_minutes = _interval_minutes(interval)
        except ValueError as exc:
            if observer is not None:
                observer.interval_skipped(interval, str(exc))
            continue

        interval_start = _local_instant(target_date, start_minutes, tz_name)
        interval_end = _local_instant(target_date, end_minutes, tz_name)
        interval_length = int((interval_end - interval_start).total_seconds() // 60)

        for duration in durations:
            window_count = interval_length // duration
            for index in range(window_count):
                slot_start = interval_start + timedelta(minutes=index * duration)
                slot_end = slot_start + timedelta(minutes=duration)
                if slot_start < earliest_start or slot_end > interval_end:
                    continue
                slots.append(
                    CandidateSlot(
                        id=local_slot_id(mentor_id, slot_start, duration),
                        start_time=slot_start,
                        end_time=slot_end,
                        date=target_date,
                        duration=duration,
                        price=calculate_price(hourly_rate, duration),
                        session_type=session_type,
                        is_available=True,
                    )
                )

    slots.sort(key=lambda slot: (slot.start_time, slot.duration))
    return slots
