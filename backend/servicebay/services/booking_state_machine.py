# backend/servicebay/services/booking_state_machine.py
"""
Administrative booking status transitions.

    pending -> confirmed -> in_progress -> completed
    pending | confirmed | in_progress -> cancelled

Forward moves may skip steps. A jump to completed that never visited
in_progress is allowed only while ``allow_direct_completion`` is on.
Backward moves and any move out of completed/cancelled are rejected.
Asking for the status a booking already has (non-terminal) is a no-op.

Side effects, applied in the same transaction as the status change:

    -> confirmed    stamp confirmed_at, notify "booking confirmed"
    -> in_progress  stamp in_progress_started_at once, notify "service started" once
    -> completed    stamp completed_at, notify "service completed", accrue loyalty once
    -> cancelled    stamp cancelled_at, no notification
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.exceptions import ConflictException, NotFoundException, ValidationException
from ..core.post_lock import booking_lock, client_lock
from ..core.timezone_utils import utc_now
from ..models.booking import STATUS_ORDER, Booking, BookingStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .loyalty_service import LoyaltyService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

OWNER_LOCK_ATTEMPTS = 3


@dataclass(frozen=True)
class TransitionResult:
    booking: Booking
    previous_status: BookingStatus
    changed: bool
    notification_id: Optional[str] = None
    points_awarded: int = 0


def parse_status(value: object) -> BookingStatus:
    try:
        return value if isinstance(value, BookingStatus) else BookingStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationException(
            "Unknown booking status",
            code="INVALID_STATUS",
            details={"status": value, "allowed": [s.value for s in BookingStatus]},
        )


def check_transition(
    current: BookingStatus, target: BookingStatus, *, allow_direct_completion: bool
) -> bool:
    """
    Validate ``current -> target``.

    Returns False for a permitted no-op, True for a real change, and raises
    ValidationException for anything the graph does not allow.
    """
    if current.is_terminal:
        raise ValidationException(
            f"Booking is already {current.value}",
            code="ILLEGAL_TRANSITION",
            details={"from": current.value, "to": target.value},
        )
    if target == current:
        return False
    if target == BookingStatus.CANCELLED:
        return True
    if STATUS_ORDER[target] < STATUS_ORDER[current]:
        raise ValidationException(
            f"Cannot move a booking back from {current.value} to {target.value}",
            code="ILLEGAL_TRANSITION",
            details={"from": current.value, "to": target.value},
        )
    if (
        target == BookingStatus.COMPLETED
        and current != BookingStatus.IN_PROGRESS
        and not allow_direct_completion
    ):
        raise ValidationException(
            "Booking must be in progress before it can be completed",
            code="ILLEGAL_TRANSITION",
            details={"from": current.value, "to": target.value},
        )
    return True


class BookingStateMachine(BaseService):
    """Applies admin status changes to one booking at a time."""

    def __init__(
        self,
        db: Session,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(db, config)
        self.clock = clock
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.notification_service = NotificationService(db, self.config)
        self.loyalty_service = LoyaltyService(db, self.config)

    @contextmanager
    def _owner_lock(self, booking_id: str) -> Iterator[Optional[str]]:
        """
        Hold the client lock of the booking's current owner.

        Side effects write to the owner's balance and feed, and a merge may
        move the booking to another client while we wait, so the owner is
        read again once the lock is held.
        """
        for _ in range(OWNER_LOCK_ATTEMPTS):
            owner_id = self.booking_repository.get_client_id(booking_id)
            if owner_id is None:
                yield None
                return
            with client_lock(owner_id):
                if self.booking_repository.get_client_id(booking_id) == owner_id:
                    yield owner_id
                    return
            self.logger.info(
                "booking_owner_changed", extra={"booking_id": booking_id, "client_id": owner_id}
            )
        raise ConflictException(
            "Booking owner kept changing, please retry",
            code="BOOKING_BUSY",
            details={"booking_id": booking_id},
        )

    @BaseService.measure_operation("transition_booking_status")
    def transition(self, booking_id: str, target_status: object) -> TransitionResult:
        """
        Move a booking to ``target_status`` and apply its side effects.

        Raises:
            ValidationException: unknown target or a move the graph forbids
            NotFoundException: unknown booking
        """
        target = parse_status(target_status)

        with booking_lock(booking_id), self._owner_lock(booking_id):
            with self.transaction():
                booking = self.booking_repository.get_for_update(booking_id)
                if booking is None:
                    raise NotFoundException("Booking not found", details={"booking_id": booking_id})

                current = booking.status_enum
                changed = check_transition(
                    current, target, allow_direct_completion=self.config.allow_direct_completion
                )
                if not changed:
                    self.logger.info(
                        "booking_transition_noop",
                        extra={"booking_id": booking_id, "status": current.value},
                    )
                    return TransitionResult(booking=booking, previous_status=current, changed=False)

                result = self._apply(booking, current, target)

        prometheus_metrics.record_transition(current.value, target.value)
        self.log_operation(
            "transition_booking_status",
            booking_id=booking_id,
            from_status=current.value,
            to_status=target.value,
            notification_id=result.notification_id,
        )
        return result

    def _apply(
        self, booking: Booking, current: BookingStatus, target: BookingStatus
    ) -> TransitionResult:
        now = self.clock()
        notification = None
        points = 0

        booking.status = target.value

        if target == BookingStatus.CONFIRMED:
            booking.confirmed_at = now
            notification = self.notification_service.append_lifecycle_event(booking, target)

        elif target == BookingStatus.IN_PROGRESS:
            if booking.in_progress_started_at is None:
                booking.in_progress_started_at = now
                notification = self.notification_service.append_lifecycle_event(booking, target)

        elif target == BookingStatus.COMPLETED:
            if current != BookingStatus.IN_PROGRESS:
                self.logger.warning(
                    "booking_completed_without_progress",
                    extra={"booking_id": booking.id, "from_status": current.value},
                )
            booking.completed_at = now
            notification = self.notification_service.append_lifecycle_event(booking, target)
            points = self.loyalty_service.accrue_for_completion(booking)

        elif target == BookingStatus.CANCELLED:
            booking.cancelled_at = now

        self.db.flush()
        return TransitionResult(
            booking=booking,
            previous_status=current,
            changed=True,
            notification_id=notification.id if notification is not None else None,
            points_awarded=points,
        )
