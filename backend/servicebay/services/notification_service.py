# backend/servicebay/services/notification_service.py
"""
Notification feed for clients.

This is the outbox the rest of the core writes to: the booking state
machine, explicit admin messages and news fan-out append immutable rows
here and never talk to a delivery channel directly. Appends join the
caller's transaction; delivery (push, polling) reads the table.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.exceptions import NotFoundException, ValidationException
from ..core.timezone_utils import to_business_time
from ..models.booking import Booking, BookingStatus
from ..models.notification import News, Notification, NotificationKind
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

# Feed texts for lifecycle events, keyed by the status being entered
LIFECYCLE_MESSAGES = {
    BookingStatus.CONFIRMED: (
        "Booking confirmed",
        "Your booking for {service_name} on {when} is confirmed. We look forward to seeing you.",
    ),
    BookingStatus.IN_PROGRESS: (
        "Service in progress",
        "Your service has started. Follow the progress in the app.",
    ),
    BookingStatus.COMPLETED: (
        "Service completed",
        "Your car is ready. The administrator has confirmed completion. You can pick up your keys.",
    ),
}


class NotificationService(BaseService):
    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db, config)
        self.notification_repository = RepositoryFactory.create_notification_repository(db)
        self.client_repository = RepositoryFactory.create_client_repository(db)

    def append(
        self,
        client_id: str,
        body: str,
        *,
        title: Optional[str] = None,
        kind: NotificationKind = NotificationKind.SERVICE,
        booking_id: Optional[str] = None,
        news_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Notification:
        """Append one notification inside the caller's transaction (no commit)."""
        fields = dict(
            client_id=client_id,
            body=body,
            title=title,
            kind=kind.value,
            booking_id=booking_id,
            news_id=news_id,
        )
        if created_at is not None:
            fields["created_at"] = created_at
        notification = self.notification_repository.create(**fields)
        prometheus_metrics.record_notification(kind.value)
        return notification

    def append_lifecycle_event(self, booking: Booking, status: BookingStatus) -> Optional[Notification]:
        """Append the feed entry for entering ``status``, if that status has one."""
        template = LIFECYCLE_MESSAGES.get(status)
        if template is None:
            return None
        title, body = template
        when = to_business_time(booking.starts_at, self.config.business_timezone)
        return self.append(
            booking.client_id,
            body.format(service_name=booking.service_name, when=when.strftime("%Y-%m-%d %H:%M")),
            title=title,
            kind=NotificationKind.SERVICE,
            booking_id=booking.id,
        )

    @BaseService.measure_operation("send_admin_message")
    def send_admin_message(self, client_id: str, body: str, title: Optional[str] = None) -> Notification:
        body = (body or "").strip()
        if not body:
            raise ValidationException("Message body is required")
        with self.transaction():
            if self.client_repository.get_by_id(client_id) is None:
                raise NotFoundException("Client not found", details={"client_id": client_id})
            notification = self.append(
                client_id, body, title=(title or "").strip() or None, kind=NotificationKind.ADMIN
            )
        self.log_operation("send_admin_message", client_id=client_id, notification_id=notification.id)
        return notification

    def broadcast_news(self, news: News) -> int:
        """
        Give every client one news notification for ``news``.

        Clients that already have it are skipped, so republishing is safe.
        Joins the caller's transaction.
        """
        already = self.notification_repository.client_ids_with_news(news.id)
        created = 0
        for client_id in self.client_repository.list_ids():
            if client_id in already:
                continue
            self.notification_repository.create(
                client_id=client_id,
                body=news.body,
                title=news.title,
                kind=NotificationKind.NEWS.value,
                news_id=news.id,
                created_at=news.created_at,
            )
            created += 1
        prometheus_metrics.record_notification(NotificationKind.NEWS.value, created)
        self.logger.info("news_broadcast", extra={"news_id": news.id, "recipients": created})
        return created

    def list_for_client(self, client_id: str, kind: Optional[NotificationKind] = None) -> List[Notification]:
        return self.notification_repository.list_for_client(
            client_id, kind.value if kind is not None else None
        )

    @BaseService.measure_operation("mark_read")
    def mark_read(self, notification_id: str, client_id: str) -> Notification:
        with self.transaction():
            notification = self.notification_repository.get_for_client(notification_id, client_id)
            if notification is None:
                raise NotFoundException(
                    "Notification not found", details={"notification_id": notification_id}
                )
            notification.is_read = True
        return notification
