"""
Shared fixtures for the booking test suite.

Every test gets a fresh in-memory SQLite database. The clock is pinned to
Monday 2030-01-07 08:00 UTC; the default mentor is off on Mondays and
available 09:00-12:00 on Tuesdays and 09:00-10:00 on Wednesdays.
"""

from datetime import datetime
from typing import Any, Callable, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base
import app.models  # noqa: F401
from app.models.user import User
from app.services.booking_service import BookingService
from app.services.external_calendar_service import ExternalCalendarService
from app.services.notification_service import NotificationService
from tests.helpers.builders import FIXED_NOW, create_mentor, create_user
from tests.helpers.fakes import FakeCalComClient, RecordingEmailSender, RecordingPaymentGateway


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(db_engine) -> Session:
    TestingSession = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mentor(db) -> User:
    return create_mentor(db)


@pytest.fixture
def student(db) -> User:
    return create_user(db, first_name="Meera", email="meera@example.com")


@pytest.fixture
def other_student(db) -> User:
    return create_user(db, first_name="Rohan", email="rohan@example.com")


@pytest.fixture
def calcom() -> FakeCalComClient:
    return FakeCalComClient()


@pytest.fixture
def payment_gateway() -> RecordingPaymentGateway:
    return RecordingPaymentGateway()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def make_service(db, payment_gateway, email_sender) -> Callable[..., BookingService]:
    """Build a BookingService on the test session; override any collaborator by keyword."""

    def _make(
        *,
        session: Optional[Session] = None,
        client: Any = None,
        gateway: Any = None,
        sender: Any = None,
        now: datetime = FIXED_NOW,
    ) -> BookingService:
        session = session or db
        return BookingService(
            session,
            calendar_service=ExternalCalendarService(session, client=client),
            payment_gateway=gateway or payment_gateway,
            notification_service=NotificationService(sender=sender or email_sender),
            clock=lambda: now,
        )

    return _make


@pytest.fixture
def booking_service(make_service) -> BookingService:
    return make_service()
