"""
Tests for ConflictChecker.

Covers the closed-open overlap rule and slot filtering against bookings
stored in the database.
"""

from datetime import timedelta

import pytest

from app.models.booking import BookingStatus
from app.services.conflict_checker import ConflictChecker, intervals_conflict
from app.services.slot_generator import generate_slots
from tests.helpers.builders import FIXED_NOW, MONDAY, TUESDAY, at, create_booking_row, create_mentor


@pytest.fixture
def checker(db) -> ConflictChecker:
    return ConflictChecker(db)


def _tuesday_slots(profile):
    return generate_slots(
        profile.get_weekly_availability(),
        TUESDAY,
        profile.get_session_durations(),
        profile.hourly_rate,
        FIXED_NOW,
        mentor_id=profile.user_id,
    )


class TestIntervalsConflict:
    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ((9, 10), (9, 10), True),
            ((9, 10), (9.5, 11), True),
            ((9, 12), (10, 11), True),
            ((9, 10), (10, 11), False),
            ((10, 11), (9, 10), False),
            ((9, 10), (11, 12), False),
        ],
    )
    def test_overlap_rule(self, a, b, expected):
        def _t(hours):
            return at(TUESDAY, 0) + timedelta(hours=hours)

        assert intervals_conflict(_t(a[0]), _t(a[1]), _t(b[0]), _t(b[1])) is expected
        # symmetric
        assert intervals_conflict(_t(b[0]), _t(b[1]), _t(a[0]), _t(a[1])) is expected


class TestFilterConflicts:
    def test_no_bookings_keeps_every_slot(self, db, checker, mentor):
        slots = _tuesday_slots(mentor.mentor_profile)

        assert checker.filter_conflicts(slots, mentor.id, TUESDAY) == slots

    def test_empty_input(self, checker, mentor):
        assert checker.filter_conflicts([], mentor.id, TUESDAY) == []

    def test_booked_window_removes_overlapping_slots(self, db, checker, mentor, student):
        create_booking_row(db, mentor, student, at(TUESDAY, 10), 60)
        slots = _tuesday_slots(mentor.mentor_profile)

        remaining = checker.filter_conflicts(slots, mentor.id, TUESDAY)

        assert len(slots) == 9
        assert [(s.start_time, s.duration) for s in remaining] == [
            (at(TUESDAY, 9), 30),
            (at(TUESDAY, 9), 60),
            (at(TUESDAY, 9, 30), 30),
            (at(TUESDAY, 11), 30),
            (at(TUESDAY, 11), 60),
            (at(TUESDAY, 11, 30), 30),
        ]

    def test_cancelled_bookings_are_ignored(self, db, checker, mentor, student):
        create_booking_row(db, mentor, student, at(TUESDAY, 10), 60, status=BookingStatus.CANCELLED.value)
        slots = _tuesday_slots(mentor.mentor_profile)

        assert checker.filter_conflicts(slots, mentor.id, TUESDAY) == slots

    def test_pending_bookings_block_slots(self, db, checker, mentor, student):
        create_booking_row(
            db, mentor, student, at(TUESDAY, 9), 30, status=BookingStatus.PENDING_MENTOR_ACCEPTANCE.value
        )

        remaining = checker.filter_conflicts(_tuesday_slots(mentor.mentor_profile), mentor.id, TUESDAY)

        assert len(remaining) == 7
        assert all(s.start_time >= at(TUESDAY, 9, 30) for s in remaining)

    def test_other_mentors_bookings_do_not_interfere(self, db, checker, mentor, student):
        other = create_mentor(db, first_name="Kavya")
        create_booking_row(db, other, student, at(TUESDAY, 9), 60)
        slots = _tuesday_slots(mentor.mentor_profile)

        assert checker.filter_conflicts(slots, mentor.id, TUESDAY) == slots

    def test_booking_from_previous_day_crossing_midnight(self, db, checker, student):
        mentor = create_mentor(
            db,
            schedule={
                "monday": {"is_available": True, "time_slots": [("23:00", "24:00")]},
                "tuesday": {"is_available": True, "time_slots": [("00:00", "02:00")]},
            },
        )
        create_booking_row(db, mentor, student, at(MONDAY, 23, 30), 60)
        slots = _tuesday_slots(mentor.mentor_profile)

        remaining = checker.filter_conflicts(slots, mentor.id, TUESDAY)

        assert at(TUESDAY, 0) in {s.start_time for s in slots}
        assert min(s.start_time for s in remaining) == at(TUESDAY, 0, 30)


class TestCheckBookingConflicts:
    def test_reports_overlapping_booking(self, db, checker, mentor, student):
        booking = create_booking_row(db, mentor, student, at(TUESDAY, 10), 60)

        conflicts = checker.check_booking_conflicts(mentor.id, at(TUESDAY, 10, 30), at(TUESDAY, 11))

        assert [c["booking_id"] for c in conflicts] == [booking.id]
        assert checker.has_conflict(mentor.id, at(TUESDAY, 10, 30), at(TUESDAY, 11))

    def test_adjacent_booking_is_not_a_conflict(self, db, checker, mentor, student):
        create_booking_row(db, mentor, student, at(TUESDAY, 10), 60)

        assert not checker.has_conflict(mentor.id, at(TUESDAY, 11), at(TUESDAY, 12))
        assert not checker.has_conflict(mentor.id, at(TUESDAY, 9), at(TUESDAY, 10))

    def test_excluded_booking_is_ignored(self, db, checker, mentor, student):
        booking = create_booking_row(db, mentor, student, at(TUESDAY, 10), 60)

        assert not checker.has_conflict(
            mentor.id, at(TUESDAY, 10, 30), at(TUESDAY, 11, 30), exclude_booking_id=booking.id
        )
