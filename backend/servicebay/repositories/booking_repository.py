# backend/servicebay/repositories/booking_repository.py
"""
Booking data access.

The overlap query is the storage half of the no-double-booking rule: it
returns every non-cancelled booking on a post whose half-open interval
intersects [start, end). Touching edges are not returned.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import Booking, BookingStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def find_overlapping(
        self,
        post_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """Non-cancelled bookings on ``post_id`` intersecting [start, end)."""
        try:
            query = self.db.query(Booking).filter(
                Booking.post_id == post_id,
                Booking.status != BookingStatus.CANCELLED.value,
                Booking.starts_at < end,
                Booking.ends_at > start,
            )
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)
            return query.order_by(Booking.starts_at).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking overlaps on post {post_id}: {str(e)}")
            raise RepositoryException(f"Failed to check booking overlaps: {str(e)}")

    def list_active_in_window(
        self, post_id: str, window_start: datetime, window_end: datetime
    ) -> List[Booking]:
        """Non-cancelled bookings on a post touching the window, for availability grids."""
        return self.find_overlapping(post_id, window_start, window_end)

    def list_for_client(self, client_id: str) -> List[Booking]:
        try:
            return (
                self.db.query(Booking)
                .filter(Booking.client_id == client_id)
                .order_by(Booking.starts_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings for client {client_id}: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}")

    def list_filtered(
        self,
        *,
        status: Optional[str] = None,
        starts_from: Optional[datetime] = None,
        starts_before: Optional[datetime] = None,
        client_id: Optional[str] = None,
        post_id: Optional[str] = None,
        limit: int = 500,
    ) -> List[Booking]:
        """Admin listing with optional filters, newest start first."""
        try:
            query = self.db.query(Booking)
            if status:
                query = query.filter(Booking.status == status)
            if starts_from is not None:
                query = query.filter(Booking.starts_at >= starts_from)
            if starts_before is not None:
                query = query.filter(Booking.starts_at < starts_before)
            if client_id:
                query = query.filter(Booking.client_id == client_id)
            if post_id:
                query = query.filter(Booking.post_id == post_id)
            return query.order_by(Booking.starts_at.desc()).limit(limit).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}")

    def get_client_id(self, booking_id: str) -> Optional[str]:
        """Current owner of a booking, read straight from storage."""
        try:
            return self.db.execute(
                select(Booking.client_id).where(Booking.id == booking_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading owner of booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to read booking owner: {str(e)}")

    def count_for_service(self, service_id: str) -> int:
        return self.count(service_id=service_id)

    def reassign_client(self, from_client_id: str, to_client_id: str) -> int:
        """Move every booking of one client to another. Returns rows moved."""
        try:
            result = self.db.execute(
                update(Booking)
                .where(Booking.client_id == from_client_id)
                .values(client_id=to_client_id)
                .execution_options(synchronize_session="fetch")
            )
            self.db.flush()
            return int(result.rowcount or 0)
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error reassigning bookings {from_client_id} -> {to_client_id}: {str(e)}"
            )
            raise RepositoryException(f"Failed to reassign bookings: {str(e)}")
