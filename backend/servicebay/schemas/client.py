# backend/servicebay/schemas/client.py
"""
Client schemas: device registration and the editable profile.
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import Field

from ._strict_base import StrictRequestModel
from .base import StandardizedModel


class ClientRegisterRequest(StrictRequestModel):
    device_id: str = Field(..., min_length=1, max_length=255)
    platform: Optional[str] = Field(None, max_length=50)
    app_version: Optional[str] = Field(None, max_length=50)


class ClientRegisterResponse(StandardizedModel):
    client_id: str
    api_key: str


class SocialLinks(StrictRequestModel):
    telegram: Optional[str] = None
    whatsapp: Optional[str] = None
    instagram: Optional[str] = None
    vk: Optional[str] = None


class ProfileUpdate(StrictRequestModel):
    """Only the fields present in the body are changed."""

    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    social_links: Optional[SocialLinks] = None
    selected_resource_id: Optional[str] = Field(None, max_length=64)


class ClientProfileResponse(StandardizedModel):
    id: str
    device_id: str
    platform: Optional[str] = None
    app_version: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    social_links: Optional[Dict[str, Optional[str]]] = None
    selected_resource_id: Optional[str] = None
    loyalty_points: int
    created_at: datetime
