# backend/tests/conftest.py
"""
Shared fixtures: a fresh in-memory database per test, settings, and an API client.
"""

import os

# Set testing mode BEFORE any servicebay imports
os.environ["IS_TESTING"] = "true"
os.environ.pop("REDIS_URL", None)

from datetime import datetime, timezone
from typing import Generator

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session, sessionmaker

from servicebay.api.dependencies.database import get_db
from servicebay.core.config import Settings, settings
from servicebay.database import Base, create_app_engine
from servicebay.main import app
import servicebay.models  # noqa: F401

from .factories import make_client, make_post, make_service


@pytest.fixture
def engine():
    engine = create_app_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        business_timezone="UTC",
        default_post_id="post_1",
        redis_url=None,
        post_lock_wait_seconds=5.0,
        allow_direct_completion=True,
        is_testing=True,
    )


@pytest.fixture
def day() -> datetime:
    """Midnight UTC of a fixed business day."""
    return datetime(2030, 5, 14, tzinfo=timezone.utc)


@pytest.fixture
def catalog(db):
    """Two posts and one active 30-minute service."""
    post = make_post(db, id="post_1")
    other_post = make_post(db, id="post_2", name="Post 2")
    service = make_service(db, name="Body wash", price=800, duration_minutes=30)
    db.commit()
    return {"service": service, "post": post, "other_post": other_post}


@pytest.fixture
def customer(db):
    client = make_client(db)
    db.commit()
    return client


@pytest.fixture
def api_client(session_factory) -> Generator[TestClient, None, None]:
    """TestClient whose requests each get their own session on the test database."""

    def override_get_db() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Admin-Key": settings.admin_api_key.get_secret_value()}
