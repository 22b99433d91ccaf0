"""Hand-written collaborators for booking tests."""

from __future__ import annotations

from decimal import Decimal
import itertools
import threading
from typing import Any, Dict, List, Optional

from app.integrations.calcom_client import CalComError
from app.services.payment_service import MockPaymentGateway, PaymentResult


class FakeCalComClient:
    """In-memory stand-in for CalComClient with per-operation failure switches."""

    def __init__(self) -> None:
        self.event_types: List[Dict[str, Any]] = []
        self.availability: Dict[str, List[Dict[str, Any]]] = {}
        self.bookings: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        self.fail_availability = False
        self.fail_create = False
        self.fail_cancel = False
        self.fail_reschedule = False
        self.fail_update = False
        self._ids = itertools.count(1000)

    def add_event_type(self, mentor_id: str, length: int = 60) -> Dict[str, Any]:
        event_type = {"id": next(self._ids), "slug": f"mentor-{mentor_id}", "length": length}
        self.event_types.append(event_type)
        return event_type

    def open_day(self, day: str, *times: str) -> None:
        """Publish remote slots for ``day`` (``YYYY-MM-DD``) at the given start times."""
        self.availability[day] = [{"date": day, "slots": [{"time": t} for t in times]}]

    def list_event_types(self) -> List[Dict[str, Any]]:
        self.calls.append(("list_event_types",))
        return list(self.event_types)

    def find_event_type(self, slug: str) -> Optional[Dict[str, Any]]:
        self.calls.append(("find_event_type", slug))
        return next((et for et in self.event_types if et["slug"] == slug), None)

    def create_event_type(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("create_event_type", payload))
        event_type = {"id": next(self._ids), **payload}
        self.event_types.append(event_type)
        return event_type

    def update_event_type(self, event_type_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("update_event_type", event_type_id, payload))
        if self.fail_update:
            raise CalComError("Bad request", status_code=400)
        return {"id": event_type_id, **payload}

    def get_availability(self, event_type_id: int, date_from: str, date_to: str) -> List[Dict[str, Any]]:
        self.calls.append(("get_availability", event_type_id, date_from, date_to))
        if self.fail_availability:
            raise CalComError("Cal.com API unreachable: timed out", status_code=None)
        return self.availability.get(date_from, [])

    def create_booking(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("create_booking", payload))
        if self.fail_create:
            raise CalComError("Internal error", status_code=500)
        booking_id = str(next(self._ids))
        booking = {"id": booking_id, "meetingUrl": f"https://cal.example/video/{booking_id}", **payload}
        self.bookings[booking_id] = booking
        return booking

    def cancel_booking(self, booking_id: str, reason: Optional[str] = None) -> None:
        self.calls.append(("cancel_booking", booking_id, reason))
        if self.fail_cancel:
            raise CalComError("Not found", status_code=404)
        self.bookings.pop(booking_id, None)

    def reschedule_booking(self, booking_id: str, start: str, end: str) -> Dict[str, Any]:
        self.calls.append(("reschedule_booking", booking_id, start, end))
        if self.fail_reschedule:
            raise CalComError("Service unavailable", status_code=503)
        self.bookings.setdefault(booking_id, {}).update({"start": start, "end": end})
        return self.bookings[booking_id]


class RecordingPaymentGateway(MockPaymentGateway):
    """MockPaymentGateway that records every charge and refund."""

    def __init__(self, *, decline_charges: bool = False, fail_refunds: bool = False) -> None:
        self.decline_charges = decline_charges
        self.fail_refunds = fail_refunds
        self.charges: List[PaymentResult] = []
        self.refunds: List[tuple] = []
        self._lock = threading.Lock()

    def charge(self, amount, currency: str, method_ref: str, *, description: str = "") -> PaymentResult:
        if self.decline_charges:
            result = PaymentResult(success=False, error="Card declined")
        else:
            result = super().charge(amount, currency, method_ref, description=description)
        with self._lock:
            self.charges.append(result)
        return result

    def refund(self, payment_id: str, amount=None) -> PaymentResult:
        with self._lock:
            self.refunds.append((payment_id, Decimal(str(amount)) if amount is not None else None))
        if self.fail_refunds:
            return PaymentResult(success=False, payment_id=payment_id, error="Refund failed")
        return super().refund(payment_id, amount)


class RecordingEmailSender:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: List[Dict[str, str]] = []

    def send_email(self, to_email: str, subject: str, text_content: str) -> Dict[str, Any]:
        if self.fail:
            raise RuntimeError("SMTP relay down")
        self.sent.append({"to": to_email, "subject": subject, "body": text_content})
        return {"id": f"email-{len(self.sent)}"}

    def subjects_for(self, email: str) -> List[str]:
        return [message["subject"] for message in self.sent if message["to"] == email]
