"""
Pydantic schemas for MentorMatch.

Request schemas validate shape and ranges only; responses use the shared
``{success, message, data}`` envelope.
"""

from .base_responses import ErrorResponse, PaginatedResponse, SuccessResponse
from .booking import (
    AvailableSlotsRequest,
    BookingAccept,
    BookingCancel,
    BookingCreate,
    BookingDecline,
    BookingListStatus,
    BookingRate,
    BookingReschedule,
    TimeSlotIn,
)

__all__ = [
    # Envelopes
    "SuccessResponse",
    "ErrorResponse",
    "PaginatedResponse",
    # Booking requests
    "AvailableSlotsRequest",
    "TimeSlotIn",
    "BookingCreate",
    "BookingCancel",
    "BookingReschedule",
    "BookingAccept",
    "BookingDecline",
    "BookingRate",
    "BookingListStatus",
]
