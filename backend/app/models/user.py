# backend/app/models/user.py
"""
User model for MentorMatch.

Students and mentors share this table and are told apart by ``role``.
Mentors additionally own a ``MentorProfile``.
"""

from enum import Enum
import logging
from typing import Any

from sqlalchemy import Boolean, CheckConstraint, Column, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ids import generate_id
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class UserRole(str, Enum):
    STUDENT = "student"
    MENTOR = "mentor"


class User(Base):
    """
    Account record for students and mentors.

    Attributes:
        id: 24-hex primary key
        email: Unique email address
        first_name: User's first name
        last_name: User's last name
        role: ``student`` or ``mentor``
        timezone: IANA timezone used for display
        is_active: Whether the account can book or be booked
    """

    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    role = Column(String(20), nullable=False, default=UserRole.STUDENT.value)
    timezone = Column(String(64), nullable=False, default="UTC")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, server_default=func.now())

    mentor_profile = relationship(
        "MentorProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("role IN ('student', 'mentor')", name="ck_users_role"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_mentor(self) -> bool:
        return self.role == UserRole.MENTOR.value

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email} ({self.role})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "timezone": self.timezone,
        }
