# backend/servicebay/routes/v1/notifications.py
"""
Notification feed routes - API v1

Endpoints:
    GET /                        → Caller's feed, newest first
    PATCH /{notification_id}/read → Mark one of the caller's notifications read
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from ...api.dependencies import (
    get_current_client,
    get_notification_service,
    handle_domain_exception,
)
from ...core.exceptions import DomainException
from ...models.client import Client
from ...schemas.notification import NotificationResponse
from ...services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications-v1"])


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    current_client: Client = Depends(get_current_client),
    service: NotificationService = Depends(get_notification_service),
) -> List[NotificationResponse]:
    items = await asyncio.to_thread(service.list_for_client, current_client.id)
    return [NotificationResponse.model_validate(item) for item in items]


@router.patch("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notification_read(
    notification_id: str,
    current_client: Client = Depends(get_current_client),
    service: NotificationService = Depends(get_notification_service),
) -> Response:
    """Another client's notification is reported as not found."""
    try:
        await asyncio.to_thread(service.mark_read, notification_id, current_client.id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
