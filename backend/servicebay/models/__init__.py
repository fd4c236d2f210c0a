"""
Database models for the booking backend.

- Catalog: Service, Post
- Booking lifecycle: Booking, BookingStatus
- Identity: Client
- Feeds: Notification, News
- Loyalty: LoyaltyReward, LoyaltyRedemption
- Admin-editable settings: AppSetting
"""

from .app_setting import AppSetting
from .booking import Booking, BookingStatus
from .catalog import Post, Service
from .client import Client
from .loyalty import LoyaltyRedemption, LoyaltyReward
from .notification import News, Notification, NotificationKind

__all__ = [
    "AppSetting",
    "Booking",
    "BookingStatus",
    "Client",
    "LoyaltyRedemption",
    "LoyaltyReward",
    "News",
    "Notification",
    "NotificationKind",
    "Post",
    "Service",
]
