# backend/servicebay/routes/v1/admin/settings.py
"""
Admin runtime settings routes - API v1

Endpoints:
    GET / → Current settings
    PUT / → Change api_base_url
"""

import asyncio

from fastapi import APIRouter, Depends

from ....api.dependencies import get_settings_service, handle_domain_exception
from ....core.exceptions import DomainException
from ....schemas.settings import AppSettingsResponse, AppSettingsUpdate
from ....services.settings_service import SettingsService

router = APIRouter(tags=["admin-settings-v1"])


@router.get("", response_model=AppSettingsResponse)
async def get_settings(service: SettingsService = Depends(get_settings_service)) -> AppSettingsResponse:
    values = await asyncio.to_thread(service.get_all)
    return AppSettingsResponse(**values)


@router.put("", response_model=AppSettingsResponse)
async def update_settings(
    payload: AppSettingsUpdate,
    service: SettingsService = Depends(get_settings_service),
) -> AppSettingsResponse:
    try:
        url = await asyncio.to_thread(service.set_api_base_url, payload.api_base_url)
    except DomainException as e:
        handle_domain_exception(e)
    return AppSettingsResponse(api_base_url=url)
