# backend/tests/factories.py
"""Small builders for test rows; each flushes so ids are available."""

from datetime import datetime, time, timedelta
from decimal import Decimal
import secrets

from sqlalchemy.orm import Session
import ulid

from servicebay.models import Booking, BookingStatus, Client, Post, Service


def make_service(db: Session, **overrides) -> Service:
    fields = dict(
        name="Body wash",
        price=Decimal("800"),
        duration_minutes=30,
        category="Auto services",
        is_active=True,
    )
    fields.update(overrides)
    service = Service(**fields)
    db.add(service)
    db.flush()
    return service


def make_post(db: Session, **overrides) -> Post:
    fields = dict(
        id="post_1",
        name="Post 1",
        is_enabled=True,
        start_time=time(9, 0),
        end_time=time(18, 0),
        interval_minutes=30,
    )
    fields.update(overrides)
    post = Post(**fields)
    db.add(post)
    db.flush()
    return post


def make_client(db: Session, **overrides) -> Client:
    device_id = overrides.pop("device_id", f"device-{ulid.ULID()}")
    fields = dict(
        device_id=device_id,
        api_key="sb_" + secrets.token_hex(24),
        phone=f"device:{device_id[:8]}",
        loyalty_points=0,
    )
    fields.update(overrides)
    client = Client(**fields)
    db.add(client)
    db.flush()
    return client


def make_booking(
    db: Session,
    client: Client,
    service: Service,
    post: Post,
    starts_at: datetime,
    **overrides,
) -> Booking:
    duration = overrides.pop("duration_minutes", service.duration_minutes)
    fields = dict(
        client_id=client.id,
        service_id=service.id,
        post_id=post.id,
        starts_at=starts_at,
        ends_at=starts_at + timedelta(minutes=duration),
        service_name=service.name,
        price=service.price,
        duration_minutes=duration,
        status=BookingStatus.PENDING.value,
    )
    fields.update(overrides)
    booking = Booking(**fields)
    db.add(booking)
    db.flush()
    return booking


def bearer(client: Client) -> dict:
    return {"Authorization": f"Bearer {client.api_key}"}
