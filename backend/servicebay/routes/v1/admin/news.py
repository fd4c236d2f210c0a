# backend/servicebay/routes/v1/admin/news.py
"""
Admin news routes - API v1

Endpoints:
    GET /             → All news, newest first
    POST /            → Create; published items reach every client's feed
    PUT /{news_id}    → Edit; publishing delivers to clients that lack it
    DELETE /{news_id} → Delete with its feed entries
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from ....api.dependencies import get_news_service, handle_domain_exception
from ....core.exceptions import DomainException
from ....schemas.notification import NewsCreate, NewsResponse, NewsUpdate
from ....services.news_service import NewsService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-news-v1"])


@router.get("", response_model=List[NewsResponse])
async def list_news(service: NewsService = Depends(get_news_service)) -> List[NewsResponse]:
    items = await asyncio.to_thread(service.list_news)
    return [NewsResponse.model_validate(item) for item in items]


@router.post("", response_model=NewsResponse, status_code=status.HTTP_201_CREATED)
async def create_news(
    payload: NewsCreate,
    service: NewsService = Depends(get_news_service),
) -> NewsResponse:
    try:
        news = await asyncio.to_thread(service.create_news, payload.model_dump())
    except DomainException as e:
        handle_domain_exception(e)
    return NewsResponse.model_validate(news)


@router.put("/{news_id}", response_model=NewsResponse)
async def update_news(
    news_id: str,
    payload: NewsUpdate,
    service: NewsService = Depends(get_news_service),
) -> NewsResponse:
    try:
        news = await asyncio.to_thread(
            service.update_news, news_id, payload.model_dump(exclude_unset=True)
        )
    except DomainException as e:
        handle_domain_exception(e)
    return NewsResponse.model_validate(news)


@router.delete("/{news_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_news(
    news_id: str,
    service: NewsService = Depends(get_news_service),
) -> Response:
    try:
        await asyncio.to_thread(service.delete_news, news_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
