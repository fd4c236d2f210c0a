# backend/servicebay/services/catalog_service.py
"""
Catalog management: services and posts.

Edits here never reach existing bookings; every booking carries its own
snapshot of service name, price and duration.
"""

from datetime import time
from decimal import Decimal, InvalidOperation
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.exceptions import ConflictException, NotFoundException, ValidationException
from ..core.timezone_utils import parse_hhmm
from ..models.catalog import Post, Service
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

SERVICE_FIELDS = ("name", "description", "price", "duration_minutes", "category", "image_url", "is_active")
POST_FIELDS = ("name", "is_enabled", "start_time", "end_time", "interval_minutes")


def _as_time(value: Any) -> time:
    return value if isinstance(value, time) else parse_hhmm(value)


class CatalogService(BaseService):
    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db, config)
        self.service_repository = RepositoryFactory.create_service_repository(db)
        self.post_repository = RepositoryFactory.create_post_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    # Services

    def list_services(self, active: Optional[bool] = None) -> List[Service]:
        return self.service_repository.list_services(active=active)

    def get_service(self, service_id: str) -> Service:
        service = self.service_repository.get_by_id(service_id)
        if service is None:
            raise NotFoundException("Service not found", details={"service_id": service_id})
        return service

    @staticmethod
    def _service_fields(data: Dict[str, Any]) -> Dict[str, Any]:
        fields = {key: data[key] for key in SERVICE_FIELDS if key in data}
        if "name" in fields and not (fields["name"] or "").strip():
            raise ValidationException("name is required")
        if "price" in fields:
            try:
                price = Decimal(str(fields["price"]))
            except (InvalidOperation, ValueError):
                raise ValidationException("price must be a number", details={"price": fields["price"]})
            if price < 0:
                raise ValidationException("price must not be negative", details={"price": fields["price"]})
            fields["price"] = price
        if "duration_minutes" in fields:
            duration = fields["duration_minutes"]
            if duration is None or int(duration) <= 0:
                raise ValidationException(
                    "duration_minutes must be positive", details={"duration_minutes": duration}
                )
            fields["duration_minutes"] = int(duration)
        return fields

    @BaseService.measure_operation("create_service")
    def create_service(self, data: Dict[str, Any]) -> Service:
        fields = self._service_fields(data)
        missing = [key for key in ("name", "price", "duration_minutes") if key not in fields]
        if missing:
            raise ValidationException("Missing required fields", details={"fields": missing})
        if data.get("id"):
            fields["id"] = data["id"]
        with self.transaction():
            service = self.service_repository.create(**fields)
        self.log_operation("create_service", service_id=service.id)
        return service

    @BaseService.measure_operation("update_service")
    def update_service(self, service_id: str, data: Dict[str, Any]) -> Service:
        fields = self._service_fields(data)
        with self.transaction():
            service = self.service_repository.update(service_id, **fields)
            if service is None:
                raise NotFoundException("Service not found", details={"service_id": service_id})
        self.log_operation("update_service", service_id=service_id, fields=sorted(fields))
        return service

    def delete_service(self, service_id: str) -> None:
        """Delete a service nobody has booked; booked services should be deactivated."""
        with self.transaction():
            if self.service_repository.get_by_id(service_id) is None:
                raise NotFoundException("Service not found", details={"service_id": service_id})
            if self.booking_repository.count_for_service(service_id):
                raise ConflictException(
                    "Service has bookings; deactivate it instead",
                    code="SERVICE_IN_USE",
                    details={"service_id": service_id},
                )
            self.service_repository.delete(service_id)
        self.log_operation("delete_service", service_id=service_id)

    # Posts

    def list_posts(self, enabled_only: bool = False) -> List[Post]:
        return self.post_repository.list_posts(enabled_only=enabled_only)

    @staticmethod
    def _post_fields(data: Dict[str, Any], current: Optional[Post] = None) -> Dict[str, Any]:
        fields = {key: data[key] for key in POST_FIELDS if key in data}
        if "name" in fields and not (fields["name"] or "").strip():
            raise ValidationException("name is required")
        for key in ("start_time", "end_time"):
            if key in fields:
                fields[key] = _as_time(fields[key])
        if "interval_minutes" in fields:
            interval = fields["interval_minutes"]
            if interval is None or int(interval) <= 0:
                raise ValidationException(
                    "interval_minutes must be positive", details={"interval_minutes": interval}
                )
            fields["interval_minutes"] = int(interval)

        start = fields.get("start_time", current.start_time if current is not None else None)
        end = fields.get("end_time", current.end_time if current is not None else None)
        if start is not None and end is not None and start >= end:
            raise ValidationException(
                "start_time must be before end_time",
                details={"start_time": start.strftime("%H:%M"), "end_time": end.strftime("%H:%M")},
            )
        return fields

    @BaseService.measure_operation("create_post")
    def create_post(self, data: Dict[str, Any]) -> Post:
        fields = self._post_fields(data)
        if "name" not in fields:
            raise ValidationException("name is required")
        post_id = data.get("id")
        with self.transaction():
            if post_id:
                if self.post_repository.get_by_id(post_id) is not None:
                    raise ConflictException("Post already exists", details={"post_id": post_id})
                fields["id"] = post_id
            post = self.post_repository.create(**fields)
        self.log_operation("create_post", post_id=post.id)
        return post

    @BaseService.measure_operation("update_post")
    def update_post(self, post_id: str, data: Dict[str, Any]) -> Post:
        with self.transaction():
            post = self.post_repository.get_for_update(post_id)
            if post is None:
                raise NotFoundException("Post not found", details={"post_id": post_id})
            fields = self._post_fields(data, current=post)
            for key, value in fields.items():
                setattr(post, key, value)
            self.db.flush()
        self.log_operation("update_post", post_id=post_id, fields=sorted(fields))
        return post
