# backend/servicebay/routes/v1/admin/clients.py
"""
Admin client routes - API v1

Endpoints:
    GET /             → Client list
    GET /{client_id}  → One client
"""

import asyncio
from typing import List

from fastapi import APIRouter, Depends, Query

from ....api.dependencies import get_client_service, handle_domain_exception
from ....core.exceptions import DomainException
from ....schemas.client import ClientProfileResponse
from ....services.client_service import ClientService

router = APIRouter(tags=["admin-clients-v1"])


@router.get("", response_model=List[ClientProfileResponse])
async def list_clients(
    limit: int = Query(500, ge=1, le=5000),
    service: ClientService = Depends(get_client_service),
) -> List[ClientProfileResponse]:
    clients = await asyncio.to_thread(service.list_clients, limit)
    return [ClientProfileResponse.model_validate(c) for c in clients]


@router.get("/{client_id}", response_model=ClientProfileResponse)
async def get_client(
    client_id: str,
    service: ClientService = Depends(get_client_service),
) -> ClientProfileResponse:
    try:
        client = await asyncio.to_thread(service.get_client, client_id)
    except DomainException as e:
        handle_domain_exception(e)
    return ClientProfileResponse.model_validate(client)
