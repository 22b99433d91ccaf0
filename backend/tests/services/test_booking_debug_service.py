"""Tests for the mentor bookability diagnostics."""

from decimal import Decimal

from app.services.booking_debug_service import BookingDebugService
from tests.helpers.builders import FIXED_NOW, MONDAY, TUESDAY, at, create_booking_row, create_mentor, create_user


class TestDiagnoseMentor:
    def test_healthy_mentor(self, db, mentor, student):
        create_booking_row(db, mentor, student, at(TUESDAY, 10), 60)

        report = BookingDebugService(db).diagnose_mentor(mentor.id, TUESDAY, FIXED_NOW)

        assert report["mentor_id"] == mentor.id
        assert report["date"] == "2030-01-08"
        assert report["issues"] == []
        assert report["slot_count"] == 9
        checks = report["checks"]
        assert checks["is_mentor"] and checks["profile_exists"] and checks["is_accepting_bookings"]
        assert checks["target_weekday"] == "tuesday"
        assert checks["weekly_schedule"]["tuesday"]["time_slots"] == [{"start_time": "09:00", "end_time": "12:00"}]
        assert checks["session_durations"] == [30, 60]
        assert checks["hourly_rate"] == 2000.0
        assert checks["active_bookings"] == 1

    def test_unknown_user(self, db):
        report = BookingDebugService(db).diagnose_mentor("f" * 24, TUESDAY, FIXED_NOW)

        assert report["checks"] == {"user_exists": False, "is_mentor": False}
        assert report["issues"] == ["User does not exist"]
        assert report["slot_count"] == 0

    def test_student_without_profile(self, db):
        student = create_user(db)

        report = BookingDebugService(db).diagnose_mentor(student.id, TUESDAY, FIXED_NOW)

        assert "User role is student, not mentor" in report["issues"]
        assert "Mentor profile does not exist" in report["issues"]

    def test_day_off_is_reported(self, db, mentor):
        report = BookingDebugService(db).diagnose_mentor(mentor.id, MONDAY, FIXED_NOW)

        assert report["slot_count"] == 0
        assert "monday is not available in the weekly schedule" in report["issues"]
        assert "Add time slots for monday" in report["suggestions"]

    def test_paused_mentor_with_bad_durations(self, db):
        mentor = create_mentor(db, accepting=False, durations=[5, 300], hourly_rate=Decimal("1500"))

        report = BookingDebugService(db).diagnose_mentor(mentor.id, TUESDAY, FIXED_NOW)

        assert "Mentor is not accepting bookings" in report["issues"]
        assert report["checks"]["session_durations"] == []
        assert "No valid session durations configured" in report["issues"]

    def test_empty_schedule(self, db):
        mentor = create_mentor(db, schedule={})

        report = BookingDebugService(db).diagnose_mentor(mentor.id, TUESDAY, FIXED_NOW)

        assert "No available days in the weekly schedule" in report["issues"]
