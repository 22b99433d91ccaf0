# backend/app/schemas/booking.py
"""
Request schemas for the booking API.

Requests accept camelCase keys (``mentorId``, ``timeSlot``) as well as
snake_case. Shape and range rules live here; business rules such as lead
time and slot availability are enforced by BookingService.
"""

from datetime import date as date_type, datetime
import re
from typing import Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..core.constants import (
    MAX_NOTES_LENGTH,
    MAX_REASON_LENGTH,
    MAX_REVIEW_LENGTH,
    MAX_SESSION_DURATION,
    MAX_SUBJECT_LENGTH,
    MIN_SUBJECT_LENGTH,
)
from ..core.ids import OBJECT_ID_PATTERN
from ..core.timezone_utils import ensure_utc

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _ensure_date_only(value: object, field_name: str) -> object:
    if isinstance(value, str):
        candidate = value.strip()
        if not DATE_ONLY_REGEX.fullmatch(candidate):
            raise ValueError(f"{field_name} must be a YYYY-MM-DD date-only string")
        return candidate
    return value


def _ensure_object_id(value: str, field_name: str) -> str:
    if not OBJECT_ID_PATTERN.fullmatch(value or ""):
        raise ValueError(f"{field_name} must be a 24-character hex id")
    return value.lower()


class RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )


class AvailableSlotsRequest(RequestModel):
    mentor_id: str
    date: date_type

    @field_validator("mentor_id")
    @classmethod
    def _validate_mentor_id(cls, v: str) -> str:
        return _ensure_object_id(v, "mentorId")

    @field_validator("date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "date")


class TimeSlotIn(RequestModel):
    """A slot as previously returned by the available-slots endpoint."""

    id: str = Field(min_length=1, max_length=200)
    start_time: datetime
    end_time: datetime
    date: date_type
    price: float = Field(gt=0)
    duration: int = Field(gt=0, le=MAX_SESSION_DURATION)
    session_type: str = Field(default="video", max_length=20)

    @field_validator("date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "date")

    @field_validator("start_time", "end_time")
    @classmethod
    def _to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def _validate_window(self) -> "TimeSlotIn":
        if self.start_time >= self.end_time:
            raise ValueError("startTime must be before endTime")
        return self


class BookingCreate(RequestModel):
    mentor_id: str
    time_slot: TimeSlotIn
    subject: str = Field(min_length=MIN_SUBJECT_LENGTH, max_length=MAX_SUBJECT_LENGTH)
    notes: Optional[str] = Field(default=None, max_length=MAX_NOTES_LENGTH)
    payment_method_id: str = Field(min_length=1, max_length=255)

    @field_validator("mentor_id")
    @classmethod
    def _validate_mentor_id(cls, v: str) -> str:
        return _ensure_object_id(v, "mentorId")

    @field_validator("notes")
    @classmethod
    def _clean_notes(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class BookingCancel(RequestModel):
    reason: Optional[str] = Field(default=None, max_length=MAX_REASON_LENGTH)


class BookingReschedule(RequestModel):
    new_time_slot: TimeSlotIn


class BookingAccept(RequestModel):
    meeting_url: Optional[str] = Field(default=None, max_length=500)

    @field_validator("meeting_url")
    @classmethod
    def _validate_url(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.startswith(("https://", "http://")):
            raise ValueError("meetingUrl must be an http(s) URL")
        return v or None


class BookingDecline(RequestModel):
    reason: Optional[str] = Field(default=None, max_length=MAX_REASON_LENGTH)


class BookingRate(RequestModel):
    rating: int = Field(ge=1, le=5)
    review: Optional[str] = Field(default=None, max_length=MAX_REVIEW_LENGTH)


BookingListStatus = Literal["upcoming", "completed", "cancelled"]
