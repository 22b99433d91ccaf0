"""
Unit tests for slot generation from weekly schedules.

generate_slots is pure, so these tests build WeeklyAvailability values
directly and never touch the database.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.domain.availability import TimeInterval, WeeklyAvailability
from app.services.slot_generator import calculate_price, generate_slots, local_slot_id
from tests.helpers.builders import FIXED_NOW, SUNDAY, TUESDAY, MONDAY, at

MENTOR_ID = "a" * 24


def _weekly(**days):
    return WeeklyAvailability.from_mapping(
        {
            name: [
                {"id": f"{name}-{i}", "start_time": start, "end_time": end}
                for i, (start, end) in enumerate(intervals)
            ]
            for name, intervals in days.items()
        }
    )


def _generate(weekly, target_date, durations=(30, 60), rate=2000, now=FIXED_NOW, **kwargs):
    return generate_slots(weekly, target_date, list(durations), rate, now, mentor_id=MENTOR_ID, **kwargs)


class _RecordingObserver:
    def __init__(self):
        self.skipped = []

    def interval_skipped(self, interval: TimeInterval, reason: str) -> None:
        self.skipped.append((interval.id, reason))


class TestWindowing:
    def test_one_hour_interval_yields_two_halves_and_one_hour(self):
        slots = _generate(_weekly(tuesday=[("09:00", "10:00")]), TUESDAY)

        assert [(s.start_time, s.duration) for s in slots] == [
            (at(TUESDAY, 9), 30),
            (at(TUESDAY, 9), 60),
            (at(TUESDAY, 9, 30), 30),
        ]
        assert all(s.end_time == s.start_time + timedelta(minutes=s.duration) for s in slots)
        assert all(s.date == TUESDAY and s.is_available for s in slots)

    def test_windows_that_do_not_fit_are_dropped(self):
        slots = _generate(_weekly(tuesday=[("09:00", "10:45")]), TUESDAY, durations=[60])

        assert [s.start_time for s in slots] == [at(TUESDAY, 9)]

    def test_prices_are_pro_rated_from_hourly_rate(self):
        slots = _generate(_weekly(tuesday=[("09:00", "10:00")]), TUESDAY)

        prices = {s.duration: s.price for s in slots}
        assert prices == {30: 1000, 60: 2000}

    def test_multiple_intervals_are_sorted_by_start_then_duration(self):
        slots = _generate(
            _weekly(tuesday=[("14:00", "15:00"), ("09:00", "10:00")]),
            TUESDAY,
        )

        keys = [(s.start_time, s.duration) for s in slots]
        assert keys == sorted(keys)
        assert keys[0] == (at(TUESDAY, 9), 30)
        assert keys[-1] == (at(TUESDAY, 14, 30), 30)

    def test_overlapping_durations_are_not_deduplicated(self):
        slots = _generate(_weekly(tuesday=[("09:00", "10:00")]), TUESDAY)

        assert len([s for s in slots if s.start_time == at(TUESDAY, 9)]) == 2

    def test_session_type_is_stamped_on_every_slot(self):
        slots = _generate(_weekly(tuesday=[("09:00", "10:00")]), TUESDAY, session_type="audio")

        assert {s.session_type for s in slots} == {"audio"}

    def test_slot_ids_are_stable(self):
        slots = _generate(_weekly(tuesday=[("09:00", "10:00")]), TUESDAY)

        assert slots[0].id == local_slot_id(MENTOR_ID, at(TUESDAY, 9), 30)
        assert slots[0].id == f"local-{MENTOR_ID}-{int(at(TUESDAY, 9).timestamp() * 1000)}-30"

    def test_same_inputs_give_identical_output(self):
        weekly = _weekly(tuesday=[("09:00", "12:00")])

        assert _generate(weekly, TUESDAY) == _generate(weekly, TUESDAY)


class TestEmptyResults:
    def test_unavailable_day_yields_nothing(self):
        assert _generate(_weekly(tuesday=[("09:00", "10:00")]), MONDAY) == []

    def test_day_flagged_unavailable_ignores_its_intervals(self):
        weekly = WeeklyAvailability.from_mapping(
            {"tuesday": {"is_available": False, "time_slots": [{"start_time": "09:00", "end_time": "10:00"}]}}
        )

        assert _generate(weekly, TUESDAY) == []

    def test_past_date_yields_nothing(self):
        assert _generate(_weekly(sunday=[("09:00", "17:00")]), SUNDAY) == []

    def test_no_valid_durations_yields_nothing(self):
        assert _generate(_weekly(tuesday=[("09:00", "10:00")]), TUESDAY, durations=[0, -30]) == []


class TestLeadTime:
    def test_slots_inside_lead_time_are_excluded(self):
        now = at(TUESDAY, 8, 30)

        slots = _generate(_weekly(tuesday=[("09:00", "12:00")]), TUESDAY, now=now)

        assert all(s.start_time >= now + timedelta(hours=2) for s in slots)
        assert [(s.start_time, s.duration) for s in slots] == [
            (at(TUESDAY, 10, 30), 30),
            (at(TUESDAY, 11), 30),
            (at(TUESDAY, 11), 60),
            (at(TUESDAY, 11, 30), 30),
        ]

    def test_custom_lead_time(self):
        now = at(TUESDAY, 8, 30)

        slots = _generate(
            _weekly(tuesday=[("09:00", "10:00")]), TUESDAY, now=now, min_lead_time=timedelta(0)
        )

        assert [s.start_time for s in slots] == [at(TUESDAY, 9), at(TUESDAY, 9), at(TUESDAY, 9, 30)]

    def test_naive_now_is_treated_as_utc(self):
        naive_now = FIXED_NOW.replace(tzinfo=None)

        assert _generate(_weekly(tuesday=[("09:00", "10:00")]), TUESDAY, now=naive_now) == _generate(
            _weekly(tuesday=[("09:00", "10:00")]), TUESDAY
        )


class TestMalformedIntervals:
    @pytest.mark.parametrize(
        "start,end",
        [("25:00", "26:00"), ("11:00", "10:00"), ("10:00", "10:00"), ("9am", "10am"), ("", "10:00")],
    )
    def test_bad_interval_is_skipped_and_reported(self, start, end):
        observer = _RecordingObserver()

        slots = _generate(
            _weekly(tuesday=[(start, end), ("09:00", "10:00")]),
            TUESDAY,
            observer=observer,
        )

        assert len(slots) == 3
        assert [interval_id for interval_id, _ in observer.skipped] == ["tuesday-0"]

    def test_bad_interval_without_observer_is_skipped_silently(self):
        slots = _generate(_weekly(tuesday=[("11:00", "10:00")]), TUESDAY)

        assert slots == []


class TestEndOfDay:
    @pytest.mark.parametrize("end", ["24:00", "00:00"])
    def test_midnight_end_means_end_of_day(self, end):
        slots = _generate(_weekly(tuesday=[("23:00", end)]), TUESDAY)

        assert len(slots) == 3
        hour = next(s for s in slots if s.duration == 60)
        assert hour.end_time == datetime(2030, 1, 9, 0, 0, tzinfo=timezone.utc)
        assert hour.date == TUESDAY


class TestTimezones:
    def test_schedule_is_read_in_mentor_timezone(self):
        slots = _generate(_weekly(tuesday=[("09:00", "10:00")]), TUESDAY, tz_name="Asia/Kolkata")

        assert slots[0].start_time == datetime(2030, 1, 8, 3, 30, tzinfo=timezone.utc)
        assert slots[0].date == TUESDAY

    def test_past_date_uses_mentor_local_today(self):
        # 20:00 UTC Monday is already Tuesday 01:30 in Kolkata
        now = at(MONDAY, 20)

        assert _generate(_weekly(monday=[("09:00", "10:00")]), MONDAY, now=now, tz_name="Asia/Kolkata") == []

    def test_unknown_timezone_falls_back_to_utc(self):
        slots = _generate(_weekly(tuesday=[("09:00", "10:00")]), TUESDAY, tz_name="Mars/Olympus")

        assert slots[0].start_time == at(TUESDAY, 9)


class TestCalculatePrice:
    @pytest.mark.parametrize(
        "rate,duration,expected",
        [(2000, 30, 1000), (2000, 45, 1500), (Decimal("999"), 30, 500), (1500.0, 60, 1500), (100, 15, 25)],
    )
    def test_pro_rated_and_rounded_half_up(self, rate, duration, expected):
        assert calculate_price(rate, duration) == expected
