# backend/servicebay/models/notification.py
"""
Notification and News models.

Notifications are append-only feed entries for one client. They are
produced by booking status transitions, explicit admin messages and news
fan-out; afterwards only the read flag changes.
"""

from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import UTCDateTime, utcnow


class NotificationKind(str, Enum):
    SERVICE = "service"
    ADMIN = "admin"
    NEWS = "news"


class Notification(Base):
    """One entry in a client's notification feed."""

    __tablename__ = "notifications"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    client_id = Column(String(26), ForeignKey("clients.id"), nullable=False, index=True)
    title = Column(String(200), nullable=True)
    body = Column(Text, nullable=False)
    kind = Column(String(20), nullable=False, default=NotificationKind.SERVICE.value)
    is_read = Column(Boolean, nullable=False, default=False)
    booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=True)
    news_id = Column(String(26), ForeignKey("news.id"), nullable=True, index=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    client = relationship("Client", back_populates="notifications")
    news = relationship("News")

    __table_args__ = (
        CheckConstraint("kind IN ('service', 'admin', 'news')", name="ck_notifications_kind"),
        Index("ix_notifications_client_created", "client_id", "created_at"),
        # One copy of a news item per client feed
        Index(
            "uq_notifications_client_news",
            "client_id",
            "news_id",
            unique=True,
            postgresql_where=text("news_id IS NOT NULL"),
            sqlite_where=text("news_id IS NOT NULL"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Notification {self.id}: client={self.client_id} kind={self.kind} read={self.is_read}>"


class News(Base):
    """Admin-authored news item; publishing fans it out to every client's feed."""

    __tablename__ = "news"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    published = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<News {self.id}: {self.title!r} published={self.published}>"
