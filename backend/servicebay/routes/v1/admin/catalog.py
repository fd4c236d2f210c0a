# backend/servicebay/routes/v1/admin/catalog.py
"""
Admin catalog routes - API v1

Endpoints:
    POST /services               → Create a service
    PUT /services/{service_id}   → Update a service
    DELETE /services/{service_id} → Delete an unbooked service
    POST /posts                  → Create a post
    PUT /posts/{post_id}         → Update name, enabled flag, hours or interval
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Response, status

from ....api.dependencies import get_catalog_service, handle_domain_exception
from ....core.exceptions import DomainException
from ....schemas.catalog import (
    PostCreate,
    PostResponse,
    PostUpdate,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
)
from ....services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-catalog-v1"])


@router.post("/services", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(
    payload: ServiceCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> ServiceResponse:
    try:
        item = await asyncio.to_thread(service.create_service, payload.model_dump(exclude_none=True))
    except DomainException as e:
        handle_domain_exception(e)
    return ServiceResponse.model_validate(item)


@router.put("/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: str,
    payload: ServiceUpdate,
    service: CatalogService = Depends(get_catalog_service),
) -> ServiceResponse:
    try:
        item = await asyncio.to_thread(
            service.update_service, service_id, payload.model_dump(exclude_unset=True)
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ServiceResponse.model_validate(item)


@router.delete("/services/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> Response:
    try:
        await asyncio.to_thread(service.delete_service, service_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> PostResponse:
    try:
        post = await asyncio.to_thread(service.create_post, payload.model_dump(exclude_none=True))
    except DomainException as e:
        handle_domain_exception(e)
    return PostResponse.model_validate(post)


@router.put("/posts/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    payload: PostUpdate,
    service: CatalogService = Depends(get_catalog_service),
) -> PostResponse:
    try:
        post = await asyncio.to_thread(
            service.update_post, post_id, payload.model_dump(exclude_unset=True)
        )
    except DomainException as e:
        handle_domain_exception(e)
    return PostResponse.model_validate(post)
