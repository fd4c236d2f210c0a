# backend/servicebay/repositories/client_repository.py
"""
Client data access: lookups by device, credential and normalized phone.
"""

import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.client import Client
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ClientRepository(BaseRepository[Client]):
    def __init__(self, db: Session):
        super().__init__(db, Client)

    def _first(self, *criteria) -> Optional[Client]:
        try:
            return self.db.query(Client).filter(*criteria).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error looking up client: {str(e)}")
            raise RepositoryException(f"Failed to look up client: {str(e)}")

    def get_by_device_id(self, device_id: str) -> Optional[Client]:
        return self._first(Client.device_id == device_id)

    def get_by_api_key(self, api_key: str) -> Optional[Client]:
        return self._first(Client.api_key == api_key)

    def get_by_phone_norm(
        self, phone_norm: str, exclude_client_id: Optional[str] = None
    ) -> Optional[Client]:
        """The client holding ``phone_norm``, optionally ignoring one record."""
        criteria = [Client.phone_norm == phone_norm]
        if exclude_client_id:
            criteria.append(Client.id != exclude_client_id)
        return self._first(*criteria)

    def list_clients(self, limit: int = 500) -> List[Client]:
        try:
            return self.db.query(Client).order_by(Client.created_at.desc()).limit(limit).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing clients: {str(e)}")
            raise RepositoryException(f"Failed to list clients: {str(e)}")

    def list_ids(self) -> List[str]:
        try:
            return [row[0] for row in self.db.query(Client.id).all()]
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing client ids: {str(e)}")
            raise RepositoryException(f"Failed to list client ids: {str(e)}")

    def add_points(self, client_id: str, points: int) -> None:
        """Atomic ``loyalty_points += points`` evaluated by the database."""
        try:
            self.db.execute(
                update(Client)
                .where(Client.id == client_id)
                .values(loyalty_points=Client.loyalty_points + points)
                .execution_options(synchronize_session="fetch")
            )
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error adding {points} points to client {client_id}: {str(e)}")
            raise RepositoryException(f"Failed to add loyalty points: {str(e)}")
