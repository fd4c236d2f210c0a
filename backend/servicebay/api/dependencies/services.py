# backend/servicebay/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each factory builds a service over the request-scoped session with the
process-wide settings.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...services.booking_ledger import BookingLedger
from ...services.booking_state_machine import BookingStateMachine
from ...services.catalog_service import CatalogService
from ...services.client_service import ClientService
from ...services.loyalty_service import LoyaltyService
from ...services.news_service import NewsService
from ...services.notification_service import NotificationService
from ...services.settings_service import SettingsService
from ...services.slot_availability import SlotAvailabilityCalculator
from .database import get_db


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    return ClientService(db, settings)


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db, settings)


def get_slot_calculator(db: Session = Depends(get_db)) -> SlotAvailabilityCalculator:
    return SlotAvailabilityCalculator(db, settings)


def get_booking_ledger(db: Session = Depends(get_db)) -> BookingLedger:
    return BookingLedger(db, settings)


def get_state_machine(db: Session = Depends(get_db)) -> BookingStateMachine:
    return BookingStateMachine(db, settings)


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db, settings)


def get_news_service(db: Session = Depends(get_db)) -> NewsService:
    return NewsService(db, settings)


def get_loyalty_service(db: Session = Depends(get_db)) -> LoyaltyService:
    return LoyaltyService(db, settings)


def get_settings_service(db: Session = Depends(get_db)) -> SettingsService:
    return SettingsService(db, settings)
