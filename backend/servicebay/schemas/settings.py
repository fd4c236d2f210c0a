# backend/servicebay/schemas/settings.py
from typing import Optional

from pydantic import Field

from ._strict_base import StrictRequestModel
from .base import StandardizedModel


class AppSettingsResponse(StandardizedModel):
    api_base_url: str


class AppSettingsUpdate(StrictRequestModel):
    api_base_url: Optional[str] = Field(None, max_length=500)


class HealthResponse(StandardizedModel):
    status: str
    service: str
    environment: str
    timestamp: str
