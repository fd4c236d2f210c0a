# backend/servicebay/models/app_setting.py
"""Key/value settings editable from the admin console."""

from sqlalchemy import Column, String, Text

from ..database import Base
from .types import UTCDateTime, utcnow


class AppSetting(Base):
    __tablename__ = "app_settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False, default="")
    updated_at = Column(UTCDateTime, nullable=True, default=utcnow, onupdate=utcnow)
