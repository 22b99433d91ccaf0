"""Availability domain types shared by the slot generator, calendar adapter and conflict filter."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import IntEnum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from app.core.timezone_utils import to_iso_utc


class Weekday(IntEnum):
    """Weekday index with Sunday as 0, matching the external calendar's convention."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def from_date(cls, day: date) -> "Weekday":
        # date.weekday() has Monday as 0
        return cls((day.weekday() + 1) % 7)

    @classmethod
    def from_name(cls, name: str) -> "Weekday":
        return cls[name.strip().upper()]

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class TimeInterval:
    """A wall-clock interval in the mentor's timezone, as entered by the mentor."""

    id: str
    start_time: str
    end_time: str


@dataclass(frozen=True)
class DayAvailability:
    is_available: bool = False
    time_slots: Tuple[TimeInterval, ...] = ()


@dataclass(frozen=True)
class WeeklyAvailability:
    """
    A mentor's recurring schedule: exactly one entry per weekday.

    Days are indexed by ``Weekday`` so a missing day cannot be represented;
    an unconfigured day is simply unavailable.
    """

    days: Tuple[DayAvailability, ...] = field(
        default_factory=lambda: tuple(DayAvailability() for _ in Weekday)
    )

    def __post_init__(self) -> None:
        if len(self.days) != len(Weekday):
            raise ValueError("weekly availability needs exactly one entry per weekday")

    def for_day(self, weekday: Weekday) -> DayAvailability:
        return self.days[int(weekday)]

    def with_day(self, weekday: Weekday, day: DayAvailability) -> "WeeklyAvailability":
        days = list(self.days)
        days[int(weekday)] = day
        return replace(self, days=tuple(days))

    @classmethod
    def from_mapping(cls, raw: Mapping[Union[str, int, Weekday], Any]) -> "WeeklyAvailability":
        """
        Build from a mapping keyed by weekday name or index.

        Each value is either ``{"is_available": bool, "time_slots": [...]}`` or
        a bare list of ``{"id", "start_time", "end_time"}`` dicts (camelCase
        keys are accepted too).
        """
        weekly = cls()
        for key, value in raw.items():
            if isinstance(key, str) and not key.isdigit():
                weekday = Weekday.from_name(key)
            else:
                weekday = Weekday(int(key))
            weekly = weekly.with_day(weekday, _parse_day(value))
        return weekly

    def to_dict(self) -> Dict[str, Any]:
        return {
            weekday.label: {
                "is_available": self.for_day(weekday).is_available,
                "time_slots": [
                    {"id": interval.id, "start_time": interval.start_time, "end_time": interval.end_time}
                    for interval in self.for_day(weekday).time_slots
                ],
            }
            for weekday in Weekday
        }


def _parse_day(value: Any) -> DayAvailability:
    if isinstance(value, DayAvailability):
        return value
    if isinstance(value, Mapping):
        is_available = bool(value.get("is_available", value.get("isAvailable", False)))
        raw_slots = value.get("time_slots", value.get("timeSlots")) or []
    else:
        raw_slots = list(value or [])
        is_available = bool(raw_slots)
    return DayAvailability(is_available=is_available, time_slots=tuple(_parse_intervals(raw_slots)))


def _parse_intervals(raw_slots: Iterable[Any]) -> List[TimeInterval]:
    intervals: List[TimeInterval] = []
    for index, raw in enumerate(raw_slots):
        if isinstance(raw, TimeInterval):
            intervals.append(raw)
            continue
        intervals.append(
            TimeInterval(
                id=str(raw.get("id") or index),
                start_time=str(raw.get("start_time", raw.get("startTime", ""))),
                end_time=str(raw.get("end_time", raw.get("endTime", ""))),
            )
        )
    return intervals


@dataclass(frozen=True)
class CandidateSlot:
    """A computed, bookable window. Never persisted."""

    id: str
    start_time: datetime
    end_time: datetime
    date: date
    duration: int
    price: int
    session_type: str
    is_available: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "start_time": to_iso_utc(self.start_time),
            "end_time": to_iso_utc(self.end_time),
            "date": self.date.isoformat(),
            "duration": self.duration,
            "price": self.price,
            "session_type": self.session_type,
            "is_available": self.is_available,
        }


# Availability lookups resolve to exactly one of these variants.


@dataclass(frozen=True)
class RemoteSlots:
    slots: List[CandidateSlot]
    source: str = "remote"


@dataclass(frozen=True)
class FallbackSlots:
    slots: List[CandidateSlot]
    reason: Optional[str] = None
    source: str = "fallback"


@dataclass(frozen=True)
class Unavailable:
    reason: Optional[str] = None
    source: str = "unavailable"

    @property
    def slots(self) -> List[CandidateSlot]:
        return []


AvailabilityResult = Union[RemoteSlots, FallbackSlots, Unavailable]
