# backend/servicebay/routes/v1/admin/notifications.py
"""
Admin messaging routes - API v1

Endpoints:
    POST / → Send a message to one client's feed
"""

import asyncio

from fastapi import APIRouter, Depends, status

from ....api.dependencies import get_notification_service, handle_domain_exception
from ....core.exceptions import DomainException
from ....schemas.notification import AdminMessageCreate, NotificationResponse
from ....services.notification_service import NotificationService

router = APIRouter(tags=["admin-notifications-v1"])


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def send_admin_message(
    payload: AdminMessageCreate,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationResponse:
    try:
        notification = await asyncio.to_thread(
            service.send_admin_message, payload.client_id, payload.body, payload.title
        )
    except DomainException as e:
        handle_domain_exception(e)
    return NotificationResponse.model_validate(notification)
