# backend/servicebay/routes/v1/catalog.py
"""
Catalog routes - API v1

Public, read-only view of the catalog for the mobile app.

Endpoints:
    GET /services          → List services, optionally filtered by active flag
    GET /services/{id}     → One service
    GET /posts             → List posts
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_catalog_service, handle_domain_exception
from ...core.exceptions import DomainException
from ...schemas.catalog import PostResponse, ServiceResponse
from ...services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog-v1"])


@router.get("/services", response_model=List[ServiceResponse])
async def list_services(
    active: Optional[bool] = Query(None, description="Filter by active flag"),
    service: CatalogService = Depends(get_catalog_service),
) -> List[ServiceResponse]:
    services = await asyncio.to_thread(service.list_services, active)
    return [ServiceResponse.model_validate(item) for item in services]


@router.get("/services/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> ServiceResponse:
    try:
        item = await asyncio.to_thread(service.get_service, service_id)
    except DomainException as e:
        handle_domain_exception(e)
    return ServiceResponse.model_validate(item)


@router.get("/posts", response_model=List[PostResponse])
async def list_posts(service: CatalogService = Depends(get_catalog_service)) -> List[PostResponse]:
    posts = await asyncio.to_thread(service.list_posts)
    return [PostResponse.model_validate(post) for post in posts]
