# backend/servicebay/services/booking_ledger.py
"""
BookingLedger: create, cancel and rate bookings.

create() is the only write path that can break the no-double-booking
rule, so it runs under the post's keyed lock and, inside one transaction,
re-reads the service and post, re-runs the overlap query and inserts the
row. The overlap check never moves a booking to another slot; it fails
with BookingConflictException.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
import logging
import math
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.exceptions import (
    AlreadyTerminalException,
    BookingConflictException,
    DisabledException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..core.post_lock import booking_lock, post_lock
from ..core.timezone_utils import (
    business_day_bounds,
    ensure_utc,
    get_business_timezone,
    parse_iso_date,
    utc_now,
)
from ..models.booking import Booking, BookingStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def normalize_rating(value: object) -> int:
    """Validate a 1..5 rating; fractional values round half up."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationException("rating must be a number from 1 to 5", details={"rating": value})
    number = float(value)
    if math.isnan(number) or number < MIN_RATING or number > MAX_RATING:
        raise ValidationException("rating must be a number from 1 to 5", details={"rating": value})
    return int(math.floor(number + 0.5))


def normalize_comment(comment: Optional[str]) -> Optional[str]:
    if comment is None:
        return None
    trimmed = str(comment).strip()
    return trimmed or None


class BookingLedger(BaseService):
    """Client-side booking writes and reads."""

    def __init__(
        self,
        db: Session,
        config: Optional[Settings] = None,
    ):
        super().__init__(db, config)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.service_repository = RepositoryFactory.create_service_repository(db)
        self.post_repository = RepositoryFactory.create_post_repository(db)
        self.client_repository = RepositoryFactory.create_client_repository(db)

    def _resolve_start(self, start: Union[datetime, str, None]) -> datetime:
        """Aware UTC start; naive values are wall-clock time in the business timezone."""
        if start is None or start == "":
            raise ValidationException("start time is required")
        if isinstance(start, str):
            try:
                start = datetime.fromisoformat(start.strip().replace("Z", "+00:00"))
            except ValueError as exc:
                raise ValidationException(
                    "Invalid start time, expected ISO 8601", details={"start": start}
                ) from exc
        if start.tzinfo is None:
            start = get_business_timezone(self.config.business_timezone).localize(start)
        return ensure_utc(start)

    @BaseService.measure_operation("create_booking")
    def create(
        self,
        service_id: Optional[str],
        post_id: Optional[str],
        start: Union[datetime, str, None],
        notes: Optional[str],
        client_id: str,
    ) -> Booking:
        """
        Reserve ``service_id`` at ``post_id`` from ``start`` for ``client_id``.

        Raises:
            ValidationException: missing service/start or malformed start
            NotFoundException: unknown service or client
            DisabledException: inactive service, unknown or disabled post
            BookingConflictException: the interval overlaps a live booking
        """
        if not service_id:
            raise ValidationException("service_id is required")
        starts_at = self._resolve_start(start)
        resolved_post_id = post_id or self.config.default_post_id

        self.log_operation(
            "create_booking",
            client_id=client_id,
            service_id=service_id,
            post_id=resolved_post_id,
            starts_at=starts_at.isoformat(),
        )

        with post_lock(resolved_post_id):
            with self.transaction():
                # Re-validate at commit time; the catalog may have changed since the slot query
                service = self.service_repository.get_by_id(service_id)
                if service is None:
                    raise NotFoundException("Service not found", details={"service_id": service_id})
                if not service.is_active:
                    raise DisabledException(
                        "Service is not active", details={"service_id": service_id}
                    )

                post = self.post_repository.get_for_update(resolved_post_id)
                if post is None or not post.is_enabled:
                    raise DisabledException(
                        "Post is not available", details={"post_id": resolved_post_id}
                    )

                if self.client_repository.get_by_id(client_id) is None:
                    raise NotFoundException("Client not found", details={"client_id": client_id})

                duration = int(service.duration_minutes)
                ends_at = starts_at + timedelta(minutes=duration)

                conflicts = self.booking_repository.find_overlapping(post.id, starts_at, ends_at)
                if conflicts:
                    prometheus_metrics.record_booking_conflict(post.id)
                    self.logger.warning(
                        "booking_conflict",
                        extra={
                            "post_id": post.id,
                            "starts_at": starts_at.isoformat(),
                            "conflicting_booking_ids": [b.id for b in conflicts],
                        },
                    )
                    raise BookingConflictException(
                        details={
                            "post_id": post.id,
                            "requested_start": starts_at.isoformat(),
                            "requested_end": ends_at.isoformat(),
                            "conflicts": [
                                {
                                    "start": b.starts_at.isoformat(),
                                    "end": b.ends_at.isoformat(),
                                }
                                for b in conflicts
                            ],
                        }
                    )

                booking = self.booking_repository.create(
                    client_id=client_id,
                    service_id=service.id,
                    post_id=post.id,
                    starts_at=starts_at,
                    ends_at=ends_at,
                    service_name=service.name,
                    price=service.price,
                    duration_minutes=duration,
                    status=BookingStatus.PENDING.value,
                    notes=normalize_comment(notes),
                )

        self.logger.info(
            "booking_created",
            extra={"booking_id": booking.id, "post_id": booking.post_id, "client_id": client_id},
        )
        return booking

    def _owned_for_update(self, booking_id: str, client_id: str) -> Booking:
        booking = self.booking_repository.get_for_update(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        if booking.client_id != client_id:
            raise ForbiddenException(
                "Only the owner can change this booking", details={"booking_id": booking_id}
            )
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel(self, booking_id: str, client_id: str) -> Booking:
        """
        Cancel a booking on behalf of its owner.

        Raises:
            NotFoundException: unknown booking
            ForbiddenException: caller does not own the booking
            AlreadyTerminalException: booking is completed or cancelled
        """
        with booking_lock(booking_id):
            with self.transaction():
                booking = self._owned_for_update(booking_id, client_id)
                if booking.is_terminal:
                    raise AlreadyTerminalException(booking.id, booking.status)
                booking.status = BookingStatus.CANCELLED.value
                booking.cancelled_at = utc_now()

        self.log_operation("cancel_booking", booking_id=booking_id, client_id=client_id)
        return booking

    @BaseService.measure_operation("rate_booking")
    def rate(
        self, booking_id: str, client_id: str, rating: object, comment: Optional[str] = None
    ) -> Booking:
        """
        Attach a 1..5 rating and optional comment.

        Any status may be rated, including pending and cancelled bookings.
        """
        value = normalize_rating(rating)
        with booking_lock(booking_id):
            with self.transaction():
                booking = self._owned_for_update(booking_id, client_id)
                if booking.status != BookingStatus.COMPLETED.value:
                    self.logger.info(
                        "booking_rated_before_completion",
                        extra={"booking_id": booking_id, "status": booking.status},
                    )
                booking.rating = value
                booking.rating_comment = normalize_comment(comment)

        self.log_operation("rate_booking", booking_id=booking_id, rating=value)
        return booking

    def get_for_client(self, booking_id: str, client_id: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        if booking.client_id != client_id:
            raise ForbiddenException(
                "Only the owner can view this booking", details={"booking_id": booking_id}
            )
        return booking

    def list_for_client(self, client_id: str) -> List[Booking]:
        return self.booking_repository.list_for_client(client_id)

    def list_bookings(
        self,
        *,
        status: Optional[str] = None,
        day: Union[date, str, None] = None,
        client_id: Optional[str] = None,
        post_id: Optional[str] = None,
    ) -> List[Booking]:
        """Admin listing; ``day`` is a local date in the business timezone."""
        if status is not None:
            try:
                status = BookingStatus(status).value
            except ValueError:
                raise ValidationException("Unknown booking status", details={"status": status})
        starts_from = starts_before = None
        if day:
            local_day = day if isinstance(day, date) else parse_iso_date(day)
            starts_from, starts_before = business_day_bounds(local_day, self.config.business_timezone)
        return self.booking_repository.list_filtered(
            status=status,
            starts_from=starts_from,
            starts_before=starts_before,
            client_id=client_id,
            post_id=post_id,
        )
