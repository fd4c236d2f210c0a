# backend/servicebay/repositories/__init__.py
"""
Repository layer: data access separated from business rules.

Repositories flush but never commit. Services own the unit of work.
"""

from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingRepository
from .catalog_repository import PostRepository, ServiceRepository
from .client_repository import ClientRepository
from .factory import RepositoryFactory
from .loyalty_repository import (
    AppSettingRepository,
    LoyaltyRedemptionRepository,
    LoyaltyRewardRepository,
)
from .notification_repository import NewsRepository, NotificationRepository

__all__ = [
    "AppSettingRepository",
    "BaseRepository",
    "BookingRepository",
    "ClientRepository",
    "IRepository",
    "LoyaltyRedemptionRepository",
    "LoyaltyRewardRepository",
    "NewsRepository",
    "NotificationRepository",
    "PostRepository",
    "RepositoryFactory",
    "ServiceRepository",
]
