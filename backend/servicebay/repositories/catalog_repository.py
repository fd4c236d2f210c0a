# backend/servicebay/repositories/catalog_repository.py
"""
Catalog data access for services and posts.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.catalog import Post, Service
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ServiceRepository(BaseRepository[Service]):
    def __init__(self, db: Session):
        super().__init__(db, Service)

    def list_services(self, active: Optional[bool] = None) -> List[Service]:
        try:
            query = self.db.query(Service)
            if active is not None:
                query = query.filter(Service.is_active.is_(active))
            return query.order_by(Service.category, Service.name).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing services: {str(e)}")
            raise RepositoryException(f"Failed to list services: {str(e)}")


class PostRepository(BaseRepository[Post]):
    def __init__(self, db: Session):
        super().__init__(db, Post)

    def list_posts(self, enabled_only: bool = False) -> List[Post]:
        try:
            query = self.db.query(Post)
            if enabled_only:
                query = query.filter(Post.is_enabled.is_(True))
            return query.order_by(Post.id).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing posts: {str(e)}")
            raise RepositoryException(f"Failed to list posts: {str(e)}")
