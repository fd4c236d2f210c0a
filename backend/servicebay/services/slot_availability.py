# backend/servicebay/services/slot_availability.py
"""
Slot availability for one service at one post on one date.

Candidate starts are laid out from the post's opening time, every
``interval_minutes``, while the start is before closing time. A candidate
is taken when [start, start + service duration) overlaps any non-cancelled
booking on the post. The result is an advisory snapshot; BookingLedger
repeats the overlap check when the booking is actually written.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
import logging
from typing import List, Optional, Sequence, Union

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.exceptions import DisabledException, NotFoundException, ValidationException
from ..core.timezone_utils import local_window_to_utc, parse_iso_date
from ..models.booking import Booking
from ..models.catalog import Post, Service
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime
    is_available: bool


def candidate_starts(window_start: datetime, window_end: datetime, interval_minutes: int) -> List[datetime]:
    """Start instants from ``window_start`` stepping by the interval while before ``window_end``."""
    if interval_minutes <= 0:
        raise ValidationException(
            "Post interval must be positive", details={"interval_minutes": interval_minutes}
        )
    step = timedelta(minutes=interval_minutes)
    starts = []
    current = window_start
    while current < window_end:
        starts.append(current)
        current += step
    return starts


def mark_availability(
    starts: Sequence[datetime], duration: timedelta, bookings: Sequence[Booking]
) -> List[Slot]:
    """Flag each candidate using the half-open overlap test."""
    slots = []
    for start in starts:
        end = start + duration
        taken = any(booking.overlaps(start, end) for booking in bookings)
        slots.append(Slot(start=start, end=end, is_available=not taken))
    return slots


class SlotAvailabilityCalculator(BaseService):
    """Read-only availability queries; takes no locks."""

    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db, config)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.service_repository = RepositoryFactory.create_service_repository(db)
        self.post_repository = RepositoryFactory.create_post_repository(db)

    def _load_service(self, service_id: Optional[str]) -> Service:
        if not service_id:
            raise ValidationException("service_id is required")
        service = self.service_repository.get_by_id(service_id)
        if service is None:
            raise NotFoundException("Service not found", details={"service_id": service_id})
        if not service.is_active:
            raise DisabledException("Service is not active", details={"service_id": service_id})
        return service

    def _load_post(self, post_id: Optional[str]) -> Post:
        resolved = post_id or self.config.default_post_id
        post = self.post_repository.get_by_id(resolved)
        if post is None or not post.is_enabled:
            raise DisabledException("Post is not available", details={"post_id": resolved})
        return post

    @BaseService.measure_operation("list_availability")
    def availability(
        self,
        service_id: Optional[str],
        day: Union[date, str, None],
        post_id: Optional[str] = None,
    ) -> List[Slot]:
        """
        Candidate slots for ``service_id`` at ``post_id`` on ``day``.

        Args:
            service_id: Service to fit into the slot
            day: Local calendar date in the business timezone (date or YYYY-MM-DD)
            post_id: Post to check; the configured default post when omitted

        Returns:
            Ordered list of Slot, earliest first

        Raises:
            ValidationException: missing service/date or an unparsable date
            NotFoundException: unknown service
            DisabledException: inactive service, unknown or disabled post
        """
        if day is None or day == "":
            raise ValidationException("date is required")
        local_day = day if isinstance(day, date) else parse_iso_date(day)

        service = self._load_service(service_id)
        post = self._load_post(post_id)

        window_start, window_end = local_window_to_utc(
            local_day, post.start_time, post.end_time, self.config.business_timezone
        )
        duration = timedelta(minutes=int(service.duration_minutes))
        starts = candidate_starts(window_start, window_end, int(post.interval_minutes))
        if not starts:
            return []

        bookings = self.booking_repository.list_active_in_window(
            post.id, starts[0], starts[-1] + duration
        )
        slots = mark_availability(starts, duration, bookings)

        self.logger.debug(
            "availability_computed",
            extra={
                "service_id": service.id,
                "post_id": post.id,
                "date": local_day.isoformat(),
                "slots": len(slots),
                "free": sum(1 for slot in slots if slot.is_available),
            },
        )
        return slots
