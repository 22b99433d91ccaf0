"""Tests for the availability domain types."""

from datetime import date, datetime, timezone

import pytest

from app.domain.availability import (
    CandidateSlot,
    DayAvailability,
    FallbackSlots,
    RemoteSlots,
    TimeInterval,
    Unavailable,
    WeeklyAvailability,
    Weekday,
)


class TestWeekday:
    @pytest.mark.parametrize(
        "day,expected",
        [
            (date(2030, 1, 6), Weekday.SUNDAY),
            (date(2030, 1, 7), Weekday.MONDAY),
            (date(2030, 1, 12), Weekday.SATURDAY),
        ],
    )
    def test_from_date_counts_from_sunday(self, day, expected):
        assert Weekday.from_date(day) == expected

    def test_from_name_is_case_insensitive(self):
        assert Weekday.from_name(" Tuesday ") is Weekday.TUESDAY
        assert Weekday.TUESDAY.label == "tuesday"


class TestWeeklyAvailability:
    def test_default_has_one_unavailable_entry_per_weekday(self):
        weekly = WeeklyAvailability()

        assert len(weekly.days) == 7
        assert not any(weekly.for_day(day).is_available for day in Weekday)

    def test_rejects_wrong_number_of_days(self):
        with pytest.raises(ValueError):
            WeeklyAvailability(days=(DayAvailability(),) * 6)

    def test_with_day_returns_new_value(self):
        weekly = WeeklyAvailability()
        day = DayAvailability(is_available=True, time_slots=(TimeInterval("1", "09:00", "10:00"),))

        updated = weekly.with_day(Weekday.FRIDAY, day)

        assert updated.for_day(Weekday.FRIDAY) == day
        assert not weekly.for_day(Weekday.FRIDAY).is_available

    def test_from_mapping_accepts_names_indexes_and_camel_case(self):
        weekly = WeeklyAvailability.from_mapping(
            {
                "monday": {"isAvailable": True, "timeSlots": [{"startTime": "09:00", "endTime": "11:00"}]},
                3: [{"id": "w1", "start_time": "14:00", "end_time": "15:00"}],
                "5": {"is_available": False, "time_slots": []},
            }
        )

        monday = weekly.for_day(Weekday.MONDAY)
        assert monday.is_available
        assert monday.time_slots[0].start_time == "09:00"
        assert monday.time_slots[0].id == "0"
        wednesday = weekly.for_day(Weekday.WEDNESDAY)
        assert wednesday.is_available
        assert wednesday.time_slots[0].id == "w1"
        assert not weekly.for_day(Weekday.FRIDAY).is_available
        assert not weekly.for_day(Weekday.SUNDAY).is_available

    def test_to_dict_lists_every_weekday(self):
        data = WeeklyAvailability.from_mapping({"tuesday": [{"start_time": "09:00", "end_time": "10:00"}]}).to_dict()

        assert list(data) == [day.label for day in Weekday]
        assert data["tuesday"]["time_slots"] == [{"id": "0", "start_time": "09:00", "end_time": "10:00"}]


class TestAvailabilityResults:
    def _slot(self):
        start = datetime(2030, 1, 8, 9, 0, tzinfo=timezone.utc)
        return CandidateSlot(
            id="local-x",
            start_time=start,
            end_time=datetime(2030, 1, 8, 10, 0, tzinfo=timezone.utc),
            date=start.date(),
            duration=60,
            price=2000,
            session_type="video",
        )

    def test_sources(self):
        assert RemoteSlots(slots=[]).source == "remote"
        assert FallbackSlots(slots=[], reason="timeout").source == "fallback"
        assert Unavailable(reason="not accepting").source == "unavailable"

    def test_unavailable_has_no_slots(self):
        assert Unavailable().slots == []

    def test_slot_to_dict_uses_utc_iso_strings(self):
        data = self._slot().to_dict()

        assert data["start_time"] == "2030-01-08T09:00:00.000Z"
        assert data["end_time"] == "2030-01-08T10:00:00.000Z"
        assert data["date"] == "2030-01-08"
        assert data["is_available"] is True
