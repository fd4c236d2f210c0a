# backend/servicebay/repositories/factory.py
"""
Repository Factory

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .catalog_repository import PostRepository, ServiceRepository
    from .client_repository import ClientRepository
    from .loyalty_repository import (
        AppSettingRepository,
        LoyaltyRedemptionRepository,
        LoyaltyRewardRepository,
    )
    from .notification_repository import NewsRepository, NotificationRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation so services and tests can swap
    implementations in one place.
    """

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_service_repository(db: Session) -> "ServiceRepository":
        from .catalog_repository import ServiceRepository

        return ServiceRepository(db)

    @staticmethod
    def create_post_repository(db: Session) -> "PostRepository":
        from .catalog_repository import PostRepository

        return PostRepository(db)

    @staticmethod
    def create_client_repository(db: Session) -> "ClientRepository":
        from .client_repository import ClientRepository

        return ClientRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)

    @staticmethod
    def create_news_repository(db: Session) -> "NewsRepository":
        from .notification_repository import NewsRepository

        return NewsRepository(db)

    @staticmethod
    def create_reward_repository(db: Session) -> "LoyaltyRewardRepository":
        from .loyalty_repository import LoyaltyRewardRepository

        return LoyaltyRewardRepository(db)

    @staticmethod
    def create_redemption_repository(db: Session) -> "LoyaltyRedemptionRepository":
        from .loyalty_repository import LoyaltyRedemptionRepository

        return LoyaltyRedemptionRepository(db)

    @staticmethod
    def create_app_setting_repository(db: Session) -> "AppSettingRepository":
        from .loyalty_repository import AppSettingRepository

        return AppSettingRepository(db)
