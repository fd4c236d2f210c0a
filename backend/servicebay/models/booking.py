# backend/servicebay/models/booking.py
"""
Booking model.

A booking reserves one Service at one Post for one Client over the
half-open interval [starts_at, ends_at). Price, duration and service name
are snapshots taken at creation; edits to the catalog never touch them.

Lifecycle: pending -> confirmed -> in_progress -> completed, with
cancelled reachable from every non-terminal status. completed and
cancelled are terminal; only the rating may change afterwards.
"""

from datetime import datetime, timedelta
from enum import Enum
import logging
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import UTCDateTime, utcnow

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})

# Position along the forward path; cancelled sits outside it.
STATUS_ORDER = {
    BookingStatus.PENDING: 0,
    BookingStatus.CONFIRMED: 1,
    BookingStatus.IN_PROGRESS: 2,
    BookingStatus.COMPLETED: 3,
}


class Booking(Base):
    """Reservation of a service at a post for a client."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    # Core relationships
    client_id = Column(String(26), ForeignKey("clients.id"), nullable=False, index=True)
    service_id = Column(String(26), ForeignKey("services.id"), nullable=False)
    post_id = Column(String(26), ForeignKey("posts.id"), nullable=False)

    # Interval, stored in UTC
    starts_at = Column(UTCDateTime, nullable=False)
    ends_at = Column(UTCDateTime, nullable=False)

    # Service snapshot (preserved for history)
    service_name = Column(String(200), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    # Booking details
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    notes = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)
    rating_comment = Column(Text, nullable=True)
    loyalty_points_awarded = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utcnow)
    confirmed_at = Column(UTCDateTime, nullable=True)
    in_progress_started_at = Column(UTCDateTime, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)

    client = relationship("Client", back_populates="bookings")
    service = relationship("Service")
    post = relationship("Post")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'in_progress', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint("duration_minutes > 0", name="ck_bookings_duration_positive"),
        CheckConstraint("price >= 0", name="ck_bookings_price_non_negative"),
        CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_bookings_rating_range"
        ),
        CheckConstraint("ends_at > starts_at", name="ck_bookings_interval_order"),
        Index("ix_bookings_post_interval", "post_id", "starts_at", "ends_at"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING.value
        if self.ends_at is None and self.starts_at is not None and self.duration_minutes:
            self.ends_at = self.starts_at + timedelta(minutes=int(self.duration_minutes))

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: client={self.client_id}, post={self.post_id}, "
            f"{self.starts_at}-{self.ends_at}, status={self.status}>"
        )

    @property
    def status_enum(self) -> BookingStatus:
        return BookingStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.status_enum.is_terminal

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open overlap test; touching edges do not overlap."""
        return start < self.ends_at and end > self.starts_at
