"""Mapping of database integrity errors to booking conflict messages."""

from sqlalchemy.exc import IntegrityError

from app.models.booking import NO_OVERLAP_CONSTRAINT
from app.services.booking_service import (
    GENERIC_CONFLICT_MESSAGE,
    SLOT_UNAVAILABLE_MESSAGE,
    BookingService,
)


class _FakeDiag:
    def __init__(self, constraint_name: str):
        self.constraint_name = constraint_name


class _FakeOrig(Exception):
    def __init__(self, message: str = "", constraint_name: str | None = None):
        super().__init__(message)
        if constraint_name is not None:
            self.diag = _FakeDiag(constraint_name)


def _service() -> BookingService:
    # The mapping needs no collaborators
    return BookingService.__new__(BookingService)


def _integrity_error(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT INTO bookings ...", {}, orig)


class TestResolveIntegrityConflictMessage:
    def test_overlap_constraint_from_diag(self):
        error = _integrity_error(_FakeOrig("conflicting key value", constraint_name=NO_OVERLAP_CONSTRAINT))

        message, scope = _service()._resolve_integrity_conflict_message(error)

        assert message == SLOT_UNAVAILABLE_MESSAGE
        assert scope == "mentor"

    def test_overlap_constraint_from_message_text(self):
        error = _integrity_error(
            _FakeOrig(f'conflicting key value violates exclusion constraint "{NO_OVERLAP_CONSTRAINT}"')
        )

        message, scope = _service()._resolve_integrity_conflict_message(error)

        assert message == SLOT_UNAVAILABLE_MESSAGE
        assert scope == "mentor"

    def test_unknown_constraint_is_generic(self):
        error = _integrity_error(_FakeOrig("duplicate key", constraint_name="users_email_key"))

        message, scope = _service()._resolve_integrity_conflict_message(error)

        assert message == GENERIC_CONFLICT_MESSAGE
        assert scope is None

    def test_error_without_details_is_generic(self):
        message, scope = _service()._resolve_integrity_conflict_message(_integrity_error(_FakeOrig()))

        assert message == GENERIC_CONFLICT_MESSAGE
        assert scope is None
