# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the MentorMatch booking core.

These exceptions carry business-focused messages that the API layer turns
into the standard ``{success, message, code, details}`` error envelope.
Integration and notification failures on soft paths never reach the API;
they are caught where they happen and logged.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input shape or range is invalid."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedException(DomainException):
    """Raised when the token does not resolve to an active user."""

    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundException(DomainException):
    """Raised when a mentor, student or booking does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenException(DomainException):
    """Raised when the actor is not a party to the booking."""

    status_code = status.HTTP_403_FORBIDDEN


class ConflictException(DomainException):
    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated (state transitions, deadlines)."""

    status_code = HTTP_422_UNPROCESSABLE


class PaymentException(DomainException):
    """Raised when the payment gateway declines or fails a charge."""

    status_code = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="PAYMENT_FAILED", details=details)


class IntegrationException(DomainException):
    """Raised when the external calendar fails on a path that must not degrade."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INTEGRATION_FAILED", details=details)


class NotificationException(DomainException):
    """Raised by notification providers; always caught by the dispatcher."""


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class BookingConflictException(ConflictException):
    """Raised when a slot is no longer available at commit time."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot is no longer available",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class InsufficientNoticeException(BusinessRuleException):
    """Raised when a slot starts before the minimum lead time."""

    def __init__(self, required_hours: int, provided_hours: float):
        super().__init__(
            message=f"Bookings must be made at least {required_hours} hours in advance",
            code="INSUFFICIENT_NOTICE",
            details={
                "required_hours": required_hours,
                "provided_hours": round(provided_hours, 2),
            },
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Used when data access operations fail, such as connection issues,
    query failures, or constraint violations.
    """
