# backend/servicebay/schemas/notification.py
from datetime import datetime
from typing import Optional

from pydantic import Field

from ..models.notification import NotificationKind
from ._strict_base import StrictRequestModel
from .base import StandardizedModel


class NotificationResponse(StandardizedModel):
    id: str
    title: Optional[str] = None
    body: str
    kind: NotificationKind
    is_read: bool
    booking_id: Optional[str] = None
    news_id: Optional[str] = None
    created_at: datetime


class AdminMessageCreate(StrictRequestModel):
    client_id: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1, max_length=4000)
    title: Optional[str] = Field(None, max_length=200)


class NewsResponse(StandardizedModel):
    id: str
    title: str
    body: str
    published: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class NewsCreate(StrictRequestModel):
    title: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1)
    published: bool = True


class NewsUpdate(StrictRequestModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    body: Optional[str] = Field(None, min_length=1)
    published: Optional[bool] = None
