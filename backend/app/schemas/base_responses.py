"""
Base response schemas for standardized API responses.

Every booking endpoint answers with ``{success, message, data}``.
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Standard paginated payload for list endpoints."""

    items: List[T] = Field(description="List of items")
    total: int = Field(description="Total number of items")
    page: int = Field(default=1, description="Current page number", ge=1)
    limit: int = Field(default=20, description="Items per page", ge=1, le=100)
    has_next: bool = Field(description="Whether there's a next page")
    has_prev: bool = Field(description="Whether there's a previous page")


class SuccessResponse(BaseModel):
    """Standard success response for operations."""

    success: bool = Field(default=True, description="Operation success status")
    message: str = Field(description="Human-readable success message")
    data: Optional[Any] = Field(default=None, description="Operation payload")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "message": "Booking created successfully",
                "data": {"booking_id": "65f1c0de9a1b2c3d4e5f6a7b"},
            }
        }
    )


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    success: bool = Field(default=False)
    message: str = Field(description="Human-readable error message")
    code: str = Field(description="Error code for programmatic handling")
    details: Optional[Dict[str, Any]] = Field(default=None)
