# backend/servicebay/models/client.py
"""
Client model.

A client is created on first launch of the mobile app, anchored to the
installation's device id, and authenticated with an opaque api key. A
real phone number may be attached later; its digits-only form
(phone_norm) is unique across clients and is the key used to merge
duplicate records.
"""

from sqlalchemy import JSON, CheckConstraint, Column, Integer, String
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import UTCDateTime, utcnow


class Client(Base):
    """Account record for one customer."""

    __tablename__ = "clients"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    device_id = Column(String(255), nullable=False, unique=True)
    api_key = Column(String(64), nullable=False, unique=True, index=True)
    platform = Column(String(50), nullable=True)
    app_version = Column(String(50), nullable=True)

    # Profile
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    phone_norm = Column(String(32), nullable=True, unique=True)
    email = Column(String(255), nullable=True)
    social_links = Column(JSON, nullable=True)
    selected_resource_id = Column(String(64), nullable=True)

    loyalty_points = Column(Integer, nullable=False, default=0)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utcnow)

    # Children are moved explicitly before a client is deleted; the ORM must not null them out
    bookings = relationship("Booking", back_populates="client", passive_deletes="all")
    notifications = relationship("Notification", back_populates="client", passive_deletes="all")

    __table_args__ = (
        CheckConstraint("loyalty_points >= 0", name="ck_clients_loyalty_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Client {self.id}: device={self.device_id} points={self.loyalty_points}>"
