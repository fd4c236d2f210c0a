# backend/servicebay/routes/v1/profile.py
"""
Profile routes - API v1

Endpoints:
    GET /  → Current client's profile
    PUT /  → Update profile fields; a phone already used by another client merges the two
"""

import asyncio
import logging

from fastapi import APIRouter, Depends

from ...api.dependencies import get_client_service, get_current_client, handle_domain_exception
from ...core.exceptions import DomainException
from ...models.client import Client
from ...schemas.client import ClientProfileResponse, ProfileUpdate
from ...services.client_service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profile-v1"])


@router.get("", response_model=ClientProfileResponse)
async def get_profile(current_client: Client = Depends(get_current_client)) -> ClientProfileResponse:
    return ClientProfileResponse.model_validate(current_client)


@router.put("", response_model=ClientProfileResponse)
async def update_profile(
    payload: ProfileUpdate,
    current_client: Client = Depends(get_current_client),
    service: ClientService = Depends(get_client_service),
) -> ClientProfileResponse:
    """Returns the surviving client, which is always the caller."""
    updates = payload.model_dump(exclude_unset=True)
    try:
        client = await asyncio.to_thread(service.update_profile, current_client.id, updates)
    except DomainException as e:
        handle_domain_exception(e)
    return ClientProfileResponse.model_validate(client)
