# backend/servicebay/routes/v1/clients.py
"""
Client registration routes - API v1

Endpoints:
    POST /register → Register a device or fetch its existing client
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, status

from ...api.dependencies import get_client_service, handle_domain_exception
from ...core.exceptions import DomainException
from ...schemas.client import ClientRegisterRequest, ClientRegisterResponse
from ...services.client_service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["clients-v1"])


@router.post("/register", response_model=ClientRegisterResponse, status_code=status.HTTP_200_OK)
async def register_client(
    payload: ClientRegisterRequest,
    service: ClientService = Depends(get_client_service),
) -> ClientRegisterResponse:
    """
    Issue (or re-issue) the credential for a device installation.

    Calling this again with the same device_id returns the same client and key.
    """
    try:
        client = await asyncio.to_thread(
            service.register_or_fetch, payload.device_id, payload.platform, payload.app_version
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ClientRegisterResponse(client_id=client.id, api_key=client.api_key)
