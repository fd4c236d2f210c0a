# backend/servicebay/schemas/catalog.py
"""
Catalog schemas: services and posts.

Working hours travel as "HH:MM" strings in the business timezone.
"""

from datetime import time
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_serializer

from ._strict_base import StrictRequestModel
from .base import Money, StandardizedModel


class ServiceResponse(StandardizedModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Money
    duration_minutes: int
    category: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool


class ServiceCreate(StrictRequestModel):
    id: Optional[str] = Field(None, max_length=26, description="Optional human-readable id")
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    duration_minutes: int = Field(..., gt=0, le=24 * 60)
    category: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = Field(None, max_length=500)
    is_active: bool = True


class ServiceUpdate(StrictRequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    category: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class PostResponse(StandardizedModel):
    id: str
    name: str
    is_enabled: bool
    start_time: time
    end_time: time
    interval_minutes: int

    @field_serializer("start_time", "end_time")
    def _hhmm(self, value: time) -> str:
        return value.strftime("%H:%M")


class PostCreate(StrictRequestModel):
    id: Optional[str] = Field(None, max_length=26)
    name: str = Field(..., min_length=1, max_length=100)
    is_enabled: bool = True
    start_time: str = Field("09:00", description="Opening time, HH:MM")
    end_time: str = Field("18:00", description="Closing time, HH:MM")
    interval_minutes: int = Field(30, gt=0)


class PostUpdate(StrictRequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    is_enabled: Optional[bool] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    interval_minutes: Optional[int] = Field(None, gt=0)
