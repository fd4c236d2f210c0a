# backend/servicebay/api/dependencies/auth.py
"""
Authentication dependencies.

Mobile clients send the api key issued at registration as a Bearer token.
The admin console sends a shared secret in the X-Admin-Key header.
"""

import asyncio
import hmac
import logging
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ...core.config import settings
from ...core.exceptions import DomainException, ForbiddenException, UnauthorizedException
from ...models.client import Client
from ...services.client_service import ClientService
from .database import get_db
from .errors import handle_domain_exception

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_client(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Client:
    """Resolve the Bearer api key to exactly one client, or fail with 401."""
    api_key = credentials.credentials if credentials is not None else None
    try:
        return await asyncio.to_thread(ClientService(db).authenticate, api_key)
    except DomainException as e:
        handle_domain_exception(e)


def require_admin(x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key")) -> None:
    """Gate for the admin console; compares in constant time."""
    expected = settings.admin_api_key.get_secret_value()
    if not x_admin_key:
        handle_domain_exception(UnauthorizedException("Missing admin key", code="UNAUTHORIZED"))
    if not hmac.compare_digest(x_admin_key.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("admin_key_rejected")
        handle_domain_exception(ForbiddenException("Invalid admin key"))
