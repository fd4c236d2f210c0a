# backend/servicebay/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import get_current_client, require_admin
from .database import get_db
from .errors import handle_domain_exception
from .services import (
    get_booking_ledger,
    get_catalog_service,
    get_client_service,
    get_loyalty_service,
    get_news_service,
    get_notification_service,
    get_settings_service,
    get_slot_calculator,
    get_state_machine,
)

__all__ = [
    # Auth
    "get_current_client",
    "require_admin",
    # Database
    "get_db",
    "handle_domain_exception",
    # Services
    "get_booking_ledger",
    "get_catalog_service",
    "get_client_service",
    "get_loyalty_service",
    "get_news_service",
    "get_notification_service",
    "get_settings_service",
    "get_slot_calculator",
    "get_state_machine",
]
