# backend/servicebay/core/config.py
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    """Runtime configuration for the booking backend."""

    environment: str = Field(default="development", description="Deployment environment")
    log_level: str = Field(default="INFO", description="Root logging level")
    is_testing: bool = Field(default=False, description="Set by the test suite")

    # Database
    database_url: str = Field(
        default="sqlite:///./servicebay.db",
        description="SQLAlchemy URL; PostgreSQL in production, SQLite locally",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Business calendar
    business_timezone: str = Field(
        default="UTC",
        description="IANA timezone the working hours of every post are declared in",
    )
    default_post_id: str = Field(
        default="post_1",
        description="Post used when an availability or booking request omits one",
    )

    # Admin console
    admin_api_key: SecretStr = Field(
        default=SecretStr("change-me"),
        description="Shared secret expected in the X-Admin-Key header",
    )
    api_base_url: str = Field(default="", description="Public base URL handed to mobile clients")

    # Locking
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis URL for the cross-process post lock; unset keeps locks in-process",
    )
    post_lock_ttl_seconds: int = Field(default=30, ge=1)
    post_lock_wait_seconds: float = Field(
        default=10.0,
        ge=0,
        description="How long a writer waits for a contended post before giving up",
    )

    # Loyalty
    loyalty_accrual_rate: float = Field(default=0.10, ge=0)
    loyalty_min_accrual: int = Field(default=1, ge=0)

    # Identity
    placeholder_phone_prefix: str = Field(default="device:")
    min_phone_digits: int = Field(default=6, ge=1)

    # Lifecycle
    allow_direct_completion: bool = Field(
        default=True,
        description="Permit pending/confirmed -> completed without visiting in_progress",
    )
    progress_tick_seconds: float = Field(default=1.0, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("business_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def get_database_url(self) -> str:
        """Return the database URL, forcing an in-memory database under pytest."""
        if self.is_testing or is_running_tests():
            return os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
        return self.database_url


settings = Settings()
