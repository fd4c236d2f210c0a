# backend/servicebay/services/news_service.py
"""
News items published by the shop and fanned out to every client's feed.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.exceptions import NotFoundException, ValidationException
from ..models.notification import News, Notification, NotificationKind
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

NEWS_FIELDS = ("title", "body", "published")


class NewsService(BaseService):
    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db, config)
        self.news_repository = RepositoryFactory.create_news_repository(db)
        self.notification_repository = RepositoryFactory.create_notification_repository(db)
        self.notification_service = NotificationService(db, self.config)

    @staticmethod
    def _fields(data: Dict[str, Any]) -> Dict[str, Any]:
        fields = {key: data[key] for key in NEWS_FIELDS if key in data}
        for key in ("title", "body"):
            if key in fields:
                fields[key] = (fields[key] or "").strip()
                if not fields[key]:
                    raise ValidationException(f"{key} is required")
        return fields

    def list_news(self, published_only: bool = False) -> List[News]:
        return self.news_repository.list_news(published_only=published_only)

    @BaseService.measure_operation("create_news")
    def create_news(self, data: Dict[str, Any]) -> News:
        fields = self._fields(data)
        if "title" not in fields or "body" not in fields:
            raise ValidationException("title and body are required")
        fields.setdefault("published", True)
        with self.transaction():
            news = self.news_repository.create(**fields)
            recipients = self.notification_service.broadcast_news(news) if news.published else 0
        self.log_operation("create_news", news_id=news.id, recipients=recipients)
        return news

    @BaseService.measure_operation("update_news")
    def update_news(self, news_id: str, data: Dict[str, Any]) -> News:
        """Edit a news item; publishing it delivers it to clients that lack it."""
        fields = self._fields(data)
        with self.transaction():
            news = self.news_repository.update(news_id, **fields)
            if news is None:
                raise NotFoundException("News not found", details={"news_id": news_id})
            recipients = self.notification_service.broadcast_news(news) if news.published else 0
        self.log_operation("update_news", news_id=news_id, recipients=recipients)
        return news

    def delete_news(self, news_id: str) -> None:
        """Delete a news item together with the feed entries it produced."""
        with self.transaction():
            if self.news_repository.get_by_id(news_id) is None:
                raise NotFoundException("News not found", details={"news_id": news_id})
            removed = self.notification_repository.delete_for_news(news_id)
            self.news_repository.delete(news_id)
        self.log_operation("delete_news", news_id=news_id, notifications_removed=removed)

    def feed_for_client(self, client_id: str) -> List[Notification]:
        """The client's news notifications, newest first, with the news item loaded."""
        return self.notification_service.list_for_client(client_id, NotificationKind.NEWS)
