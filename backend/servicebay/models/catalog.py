# backend/servicebay/models/catalog.py
"""
Catalog models: the services a client can buy and the posts they are performed at.

Both tables are read by the booking engine at commit time. Service price
and duration are copied onto every booking, so editing a Service never
changes bookings that already exist.
"""

from datetime import time
import logging

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, Numeric, String, Text, Time
import ulid

from ..database import Base
from .types import UTCDateTime, utcnow

logger = logging.getLogger(__name__)

DEFAULT_OPENING = time(9, 0)
DEFAULT_CLOSING = time(18, 0)
DEFAULT_INTERVAL_MINUTES = 30


class Service(Base):
    """A purchasable offering with a price and a duration in minutes."""

    __tablename__ = "services"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    duration_minutes = Column(Integer, nullable=False)
    category = Column(String(100), nullable=True, index=True)
    image_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
        CheckConstraint("price >= 0", name="ck_services_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Service {self.id}: {self.name} {self.duration_minutes}min active={self.is_active}>"


class Post(Base):
    """
    A bookable physical resource, e.g. a wash bay.

    Working hours are wall-clock times in the business timezone; the
    availability calculator resolves them to absolute instants per date.
    """

    __tablename__ = "posts"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(100), nullable=False)
    is_enabled = Column(Boolean, nullable=False, default=True)
    start_time = Column(Time, nullable=False, default=DEFAULT_OPENING)
    end_time = Column(Time, nullable=False, default=DEFAULT_CLOSING)
    interval_minutes = Column(Integer, nullable=False, default=DEFAULT_INTERVAL_MINUTES)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("interval_minutes > 0", name="ck_posts_interval_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<Post {self.id}: {self.name} {self.start_time}-{self.end_time} "
            f"every {self.interval_minutes}min enabled={self.is_enabled}>"
        )
