# backend/servicebay/schemas/booking.py
"""
Booking schemas: slots, booking requests and responses, progress and admin transitions.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import Field, field_validator

from ..models.booking import BookingStatus
from ._strict_base import StrictRequestModel
from .base import Money, StandardizedModel


class SlotResponse(StandardizedModel):
    start: datetime
    end: datetime
    available: bool = Field(..., validation_alias="is_available")


class BookingCreate(StrictRequestModel):
    """
    Reserve a service at a post.

    ``start`` is ISO 8601; a value without an offset is read as wall-clock
    time in the business timezone.
    """

    service_id: str = Field(..., min_length=1)
    post_id: Optional[str] = Field(None, description="Defaults to the configured default post")
    start: datetime
    notes: Optional[str] = Field(None, max_length=1000)


class BookingRatingRequest(StrictRequestModel):
    rating: Union[int, float]
    comment: Optional[str] = Field(None, max_length=2000)

    @field_validator("rating", mode="before")
    @classmethod
    def _reject_bool(cls, value: object) -> object:
        if isinstance(value, bool):
            raise ValueError("rating must be a number")
        return value


class BookingResponse(StandardizedModel):
    id: str
    client_id: str
    service_id: str
    post_id: str
    service_name: str
    price: Money
    duration_minutes: int
    starts_at: datetime
    ends_at: datetime
    status: BookingStatus
    notes: Optional[str] = None
    rating: Optional[int] = None
    rating_comment: Optional[str] = None
    loyalty_points_awarded: int = 0
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    in_progress_started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


class BookingStatusUpdate(StrictRequestModel):
    status: str = Field(..., description="Target status")


class BookingTransitionResponse(StandardizedModel):
    booking: BookingResponse
    previous_status: BookingStatus
    changed: bool
    notification_id: Optional[str] = None
    points_awarded: int = 0


class ProgressResponse(StandardizedModel):
    booking_id: str
    status: BookingStatus
    started_at: datetime
    elapsed_seconds: int
    remaining_minutes: int
    fraction: float
    label: str
