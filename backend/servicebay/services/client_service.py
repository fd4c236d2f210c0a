# backend/servicebay/services/client_service.py
"""
Client accounts: device registration, api-key authentication and profiles.
"""

import logging
import secrets
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.exceptions import (
    NotFoundException,
    RepositoryException,
    UnauthorizedException,
    ValidationException,
)
from ..models.client import Client
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .client_identity import ClientIdentityResolver

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "sb_"


def generate_api_key() -> str:
    return API_KEY_PREFIX + secrets.token_hex(24)


class ClientService(BaseService):
    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db, config)
        self.client_repository = RepositoryFactory.create_client_repository(db)

    def placeholder_phone(self, device_id: str) -> str:
        return f"{self.config.placeholder_phone_prefix}{device_id[:8]}"

    @BaseService.measure_operation("register_client")
    def register_or_fetch(
        self,
        device_id: Optional[str],
        platform: Optional[str] = None,
        app_version: Optional[str] = None,
    ) -> Client:
        """
        Return the client for ``device_id``, creating it on first launch.

        Registering the same device twice hands back the existing record and
        api key.
        """
        device_id = (device_id or "").strip()
        if not device_id:
            raise ValidationException("device_id is required")

        existing = self.client_repository.get_by_device_id(device_id)
        if existing is not None:
            return existing

        try:
            with self.transaction():
                client = self.client_repository.create(
                    device_id=device_id,
                    api_key=generate_api_key(),
                    platform=platform,
                    app_version=app_version,
                    phone=self.placeholder_phone(device_id),
                    phone_norm=None,
                    loyalty_points=0,
                )
        except RepositoryException:
            # Another request registered the same device first
            existing = self.client_repository.get_by_device_id(device_id)
            if existing is None:
                raise
            return existing

        self.log_operation("register_client", client_id=client.id, platform=platform)
        return client

    def authenticate(self, api_key: Optional[str]) -> Client:
        if not api_key:
            raise UnauthorizedException("Missing api key", code="UNAUTHORIZED")
        client = self.client_repository.get_by_api_key(api_key)
        if client is None:
            raise UnauthorizedException("Invalid api key", code="UNAUTHORIZED")
        return client

    def get_client(self, client_id: str) -> Client:
        client = self.client_repository.get_by_id(client_id)
        if client is None:
            raise NotFoundException("Client not found", details={"client_id": client_id})
        return client

    def update_profile(self, client_id: str, updates: Dict[str, Any]) -> Client:
        return ClientIdentityResolver(self.db, self.config).update_profile(client_id, updates)

    def list_clients(self, limit: int = 500) -> List[Client]:
        return self.client_repository.list_clients(limit=limit)
