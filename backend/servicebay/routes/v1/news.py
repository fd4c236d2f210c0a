# backend/servicebay/routes/v1/news.py
"""
News feed routes - API v1

Endpoints:
    GET / → News delivered to the caller, newest first
"""

import asyncio
from typing import List

from fastapi import APIRouter, Depends

from ...api.dependencies import get_current_client, get_news_service
from ...models.client import Client
from ...schemas.notification import NotificationResponse
from ...services.news_service import NewsService

router = APIRouter(tags=["news-v1"])


@router.get("", response_model=List[NotificationResponse])
async def list_my_news(
    current_client: Client = Depends(get_current_client),
    service: NewsService = Depends(get_news_service),
) -> List[NotificationResponse]:
    items = await asyncio.to_thread(service.feed_for_client, current_client.id)
    return [NotificationResponse.model_validate(item) for item in items]
