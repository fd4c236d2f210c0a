# backend/servicebay/repositories/notification_repository.py
"""
Notification and news data access.
"""

import logging
from typing import List, Optional, Set

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from ..core.exceptions import RepositoryException
from ..models.notification import News, Notification, NotificationKind
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: Session):
        super().__init__(db, Notification)

    def list_for_client(self, client_id: str, kind: Optional[str] = None) -> List[Notification]:
        try:
            query = self.db.query(Notification).filter(Notification.client_id == client_id)
            if kind:
                query = query.filter(Notification.kind == kind)
            return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing notifications for {client_id}: {str(e)}")
            raise RepositoryException(f"Failed to list notifications: {str(e)}")

    def get_for_client(self, notification_id: str, client_id: str) -> Optional[Notification]:
        try:
            return (
                self.db.query(Notification)
                .filter(Notification.id == notification_id, Notification.client_id == client_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading notification {notification_id}: {str(e)}")
            raise RepositoryException(f"Failed to load notification: {str(e)}")

    def client_ids_with_news(self, news_id: str) -> Set[str]:
        """Clients that already received a given news item."""
        try:
            rows = (
                self.db.query(Notification.client_id)
                .filter(
                    Notification.news_id == news_id,
                    Notification.kind == NotificationKind.NEWS.value,
                )
                .all()
            )
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading news recipients for {news_id}: {str(e)}")
            raise RepositoryException(f"Failed to read news recipients: {str(e)}")

    def delete_for_news(self, news_id: str) -> int:
        try:
            result = self.db.execute(
                delete(Notification)
                .where(
                    Notification.news_id == news_id,
                    Notification.kind == NotificationKind.NEWS.value,
                )
                .execution_options(synchronize_session="fetch")
            )
            self.db.flush()
            return int(result.rowcount or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting notifications for news {news_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete news notifications: {str(e)}")

    def delete_news_already_held(self, from_client_id: str, to_client_id: str) -> int:
        """Drop news entries of one client that the other client already has."""
        held = aliased(Notification)
        held_news_ids = select(held.news_id).where(
            held.client_id == to_client_id,
            held.kind == NotificationKind.NEWS.value,
            held.news_id.isnot(None),
        )
        try:
            result = self.db.execute(
                delete(Notification)
                .where(
                    Notification.client_id == from_client_id,
                    Notification.kind == NotificationKind.NEWS.value,
                    Notification.news_id.in_(held_news_ids),
                )
                .execution_options(synchronize_session="fetch")
            )
            self.db.flush()
            return int(result.rowcount or 0)
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error dropping duplicate news {from_client_id} -> {to_client_id}: {str(e)}"
            )
            raise RepositoryException(f"Failed to drop duplicate news: {str(e)}")

    def reassign_client(self, from_client_id: str, to_client_id: str) -> int:
        try:
            result = self.db.execute(
                update(Notification)
                .where(Notification.client_id == from_client_id)
                .values(client_id=to_client_id)
                .execution_options(synchronize_session="fetch")
            )
            self.db.flush()
            return int(result.rowcount or 0)
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error reassigning notifications {from_client_id} -> {to_client_id}: {str(e)}"
            )
            raise RepositoryException(f"Failed to reassign notifications: {str(e)}")


class NewsRepository(BaseRepository[News]):
    def __init__(self, db: Session):
        super().__init__(db, News)

    def list_news(self, published_only: bool = False) -> List[News]:
        try:
            query = self.db.query(News)
            if published_only:
                query = query.filter(News.published.is_(True))
            return query.order_by(News.created_at.desc()).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing news: {str(e)}")
            raise RepositoryException(f"Failed to list news: {str(e)}")
