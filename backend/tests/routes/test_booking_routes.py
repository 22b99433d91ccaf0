"""
HTTP tests for the v1 booking routes.

The app is built with create_app(); the database and BookingService are
overridden so requests run against the per-test SQLite session with the
pinned clock.
"""

from datetime import timedelta

from fastapi.testclient import TestClient
import pytest

from app.api.dependencies.database import get_db
from app.api.dependencies.services import get_booking_service
from app.auth import create_access_token
from app.core.config import settings
from app.main import create_app
from app.models.booking import BookingStatus
from tests.helpers.builders import MONDAY, TUESDAY, at, create_booking_row

BOOKING_URL = "/api/v1/booking"


def _auth(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


def _slot_payload(start, duration=30, price=1000):
    return {
        "id": f"local-{int(start.timestamp() * 1000)}-{duration}",
        "startTime": start.isoformat().replace("+00:00", "Z"),
        "endTime": (start + timedelta(minutes=duration)).isoformat().replace("+00:00", "Z"),
        "date": start.date().isoformat(),
        "price": price,
        "duration": duration,
        "sessionType": "video",
    }


def _create_payload(mentor, start=None, duration=30):
    return {
        "mentorId": mentor.id,
        "timeSlot": _slot_payload(start or at(TUESDAY, 9), duration),
        "subject": "Career guidance",
        "notes": "Interview prep",
        "paymentMethodId": "pm_card_visa_4242",
    }


def _build_client(db, make_service) -> TestClient:
    app = create_app()

    def _override_db():
        yield db

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_booking_service] = lambda: make_service()
    return TestClient(app)


@pytest.fixture
def client(db, make_service):
    with _build_client(db, make_service) as test_client:
        yield test_client


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get(f"{BOOKING_URL}/user-bookings")

        assert response.status_code == 401
        body = response.json()
        assert body == {"success": False, "message": "Not authenticated", "code": "UNAUTHORIZED"}

    def test_invalid_token(self, client):
        response = client.get(f"{BOOKING_URL}/user-bookings", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["message"] == "Could not validate credentials"

    def test_token_for_unknown_user(self, client):
        token = create_access_token({"sub": "f" * 24})

        response = client.get(f"{BOOKING_URL}/user-bookings", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_token_with_malformed_subject(self, client):
        token = create_access_token({"sub": "mentor@example.com"})

        response = client.get(f"{BOOKING_URL}/user-bookings", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_expired_token(self, client, student):
        token = create_access_token({"sub": student.id}, expires_delta=timedelta(minutes=-5))

        response = client.get(f"{BOOKING_URL}/user-bookings", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401


class TestAvailableSlots:
    def test_lists_slots(self, client, mentor, student):
        response = client.post(
            f"{BOOKING_URL}/available-slots",
            json={"mentorId": mentor.id, "date": "2030-01-08"},
            headers=_auth(student),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["source"] == "fallback"
        slots = body["data"]["slots"]
        assert len(slots) == 9
        assert slots[0]["start_time"] == "2030-01-08T09:00:00.000Z"
        assert slots[0]["price"] == 1000

    def test_rejects_datetime_for_date(self, client, mentor, student):
        response = client.post(
            f"{BOOKING_URL}/available-slots",
            json={"mentorId": mentor.id, "date": "2030-01-08T09:00:00Z"},
            headers=_auth(student),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"]["errors"]

    def test_unknown_mentor(self, client, student):
        response = client.post(
            f"{BOOKING_URL}/available-slots",
            json={"mentorId": "f" * 24, "date": "2030-01-08"},
            headers=_auth(student),
        )

        assert response.status_code == 404
        assert response.json()["code"] == "MENTOR_NOT_FOUND"


class TestBookingFlow:
    def test_create_list_cancel(self, client, mentor, student):
        created = client.post(f"{BOOKING_URL}/create", json=_create_payload(mentor), headers=_auth(student))

        assert created.status_code == 201
        data = created.json()["data"]
        assert data["status"] == BookingStatus.PENDING_MENTOR_ACCEPTANCE.value
        assert data["meeting_provider"] == "fallback"
        assert data["calcom_created"] is False
        assert data["meeting_url"]
        assert data["booking"]["price"] == 1000.0
        booking_id = data["booking_id"]

        listed = client.get(f"{BOOKING_URL}/user-bookings", headers=_auth(student))
        assert listed.status_code == 200
        page = listed.json()["data"]
        assert page["total"] == 1
        assert page["items"][0]["id"] == booking_id
        assert page["has_next"] is False

        detail = client.get(f"{BOOKING_URL}/{booking_id}", headers=_auth(mentor))
        assert detail.json()["data"]["subject"] == "Career guidance"

        cancelled = client.put(
            f"{BOOKING_URL}/{booking_id}/cancel", json={"reason": "Exam clash"}, headers=_auth(student)
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["data"]["status"] == "cancelled"
        assert cancelled.json()["data"]["refund_status"] == "processed"

        again = client.put(f"{BOOKING_URL}/{booking_id}/cancel", headers=_auth(student))
        assert again.status_code == 422
        assert again.json()["code"] == "INVALID_STATE"

    def test_double_booking_is_a_conflict(self, client, mentor, student, other_student):
        client.post(f"{BOOKING_URL}/create", json=_create_payload(mentor), headers=_auth(student))

        response = client.post(
            f"{BOOKING_URL}/create", json=_create_payload(mentor, duration=60), headers=_auth(other_student)
        )

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "BOOKING_CONFLICT"
        assert body["details"]["mentor_id"] == mentor.id

    def test_payment_failure(self, client, mentor, student):
        payload = _create_payload(mentor)
        payload["paymentMethodId"] = "pm_1"

        response = client.post(f"{BOOKING_URL}/create", json=payload, headers=_auth(student))

        assert response.status_code == 402
        assert response.json()["code"] == "PAYMENT_FAILED"

    def test_insufficient_notice(self, client, mentor, student):
        response = client.post(
            f"{BOOKING_URL}/create", json=_create_payload(mentor, at(MONDAY, 9)), headers=_auth(student)
        )

        assert response.status_code == 422
        assert response.json()["code"] == "INSUFFICIENT_NOTICE"

    def test_slot_not_offered_is_a_conflict(self, client, mentor, student):
        response = client.post(
            f"{BOOKING_URL}/create", json=_create_payload(mentor, at(TUESDAY, 10, 7)), headers=_auth(student)
        )

        assert response.status_code == 409
        assert response.json()["code"] == "BOOKING_CONFLICT"
        assert response.json()["details"]["availability_source"] == "fallback"

    def test_invalid_mentor_id(self, client, mentor, student):
        payload = _create_payload(mentor)
        payload["mentorId"] = "not-an-id"

        response = client.post(f"{BOOKING_URL}/create", json=payload, headers=_auth(student))

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_accept_and_reschedule(self, client, mentor, student):
        booking_id = client.post(
            f"{BOOKING_URL}/create", json=_create_payload(mentor), headers=_auth(student)
        ).json()["data"]["booking_id"]

        accepted = client.put(f"{BOOKING_URL}/{booking_id}/accept", headers=_auth(mentor))
        assert accepted.status_code == 200
        assert accepted.json()["data"]["status"] == "confirmed"

        moved = client.put(
            f"{BOOKING_URL}/{booking_id}/reschedule",
            json={"newTimeSlot": _slot_payload(at(TUESDAY, 11), 30)},
            headers=_auth(student),
        )
        assert moved.status_code == 200
        assert moved.json()["data"]["scheduled_time"] == "2030-01-08T11:00:00.000Z"
        assert moved.json()["data"]["duration"] == 30

        longer = client.put(
            f"{BOOKING_URL}/{booking_id}/reschedule",
            json={"newTimeSlot": _slot_payload(at(TUESDAY, 9), 60, 2000)},
            headers=_auth(student),
        )
        assert longer.status_code == 400
        assert longer.json()["details"] == {"duration": 30, "requested": 60}

    def test_decline(self, client, mentor, student):
        booking_id = client.post(
            f"{BOOKING_URL}/create", json=_create_payload(mentor), headers=_auth(student)
        ).json()["data"]["booking_id"]

        forbidden = client.put(f"{BOOKING_URL}/{booking_id}/decline", headers=_auth(student))
        declined = client.put(
            f"{BOOKING_URL}/{booking_id}/decline", json={"reason": "Travelling"}, headers=_auth(mentor)
        )

        assert forbidden.status_code == 403
        assert declined.status_code == 200
        assert declined.json()["data"]["cancellation_reason"] == "Travelling"

    def test_rate_completed_session(self, db, client, mentor, student):
        booking = create_booking_row(db, mentor, student, at(MONDAY, 1), status=BookingStatus.COMPLETED.value)

        response = client.post(
            f"{BOOKING_URL}/{booking.id}/rate", json={"rating": 5, "review": "Great"}, headers=_auth(student)
        )
        out_of_range = client.post(f"{BOOKING_URL}/{booking.id}/rate", json={"rating": 9}, headers=_auth(mentor))

        assert response.status_code == 200
        assert response.json()["data"]["student_rating"] == 5
        assert out_of_range.status_code == 400


class TestBookingLookups:
    def test_unknown_booking(self, client, student):
        response = client.get(f"{BOOKING_URL}/{'f' * 24}", headers=_auth(student))

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "message": "Booking not found",
            "code": "BOOKING_NOT_FOUND",
        }

    def test_malformed_booking_id(self, client, student):
        response = client.get(f"{BOOKING_URL}/not-a-valid-id", headers=_auth(student))

        assert response.status_code == 400

    def test_list_status_filter_validation(self, client, student):
        response = client.get(f"{BOOKING_URL}/user-bookings?status=someday", headers=_auth(student))

        assert response.status_code == 400


class TestSyncAvailability:
    def test_requires_mentor(self, client, student):
        response = client.post(f"{BOOKING_URL}/sync-availability", headers=_auth(student))

        assert response.status_code == 403
        assert response.json()["message"] == "Not a mentor"

    def test_without_external_calendar(self, client, mentor):
        response = client.post(f"{BOOKING_URL}/sync-availability", headers=_auth(mentor))

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["data"] == {"synced": False}


class TestDebugRoutes:
    def test_not_mounted_without_debug(self, client, mentor):
        response = client.get(f"{BOOKING_URL}/debug/mentor/{mentor.id}?date=2030-01-08", headers=_auth(mentor))

        assert response.status_code == 404

    def test_reports_checks_with_debug(self, db, make_service, mentor, monkeypatch):
        monkeypatch.setattr(settings, "debug", True)

        with _build_client(db, make_service) as debug_client:
            response = debug_client.get(
                f"{BOOKING_URL}/debug/mentor/{mentor.id}?date=2030-01-08", headers=_auth(mentor)
            )

        assert response.status_code == 200
        report = response.json()["data"]
        assert report["checks"]["target_weekday"] == "tuesday"
        assert report["checks"]["is_mentor"] is True


class TestOperationalRoutes:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_metrics(self, client, mentor, student):
        client.post(
            f"{BOOKING_URL}/available-slots",
            json={"mentorId": mentor.id, "date": "2030-01-08"},
            headers=_auth(student),
        )

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
