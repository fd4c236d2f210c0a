# backend/servicebay/services/settings_service.py
"""
Runtime settings the admin console may change without a redeploy.

Stored rows win over the environment-provided defaults in Settings.
"""

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.exceptions import ValidationException
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

API_BASE_URL_KEY = "api_base_url"


class SettingsService(BaseService):
    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db, config)
        self.setting_repository = RepositoryFactory.create_app_setting_repository(db)

    def get_api_base_url(self) -> str:
        stored = self.setting_repository.get_value(API_BASE_URL_KEY)
        return stored if stored is not None else self.config.api_base_url

    def get_all(self) -> Dict[str, str]:
        return {API_BASE_URL_KEY: self.get_api_base_url()}

    def set_api_base_url(self, value: Optional[str]) -> str:
        url = (value or "").strip().rstrip("/")
        if url and not url.startswith(("http://", "https://")):
            raise ValidationException(
                "api_base_url must be an http(s) URL", details={"api_base_url": value}
            )
        with self.transaction():
            self.setting_repository.set_value(API_BASE_URL_KEY, url)
        self.log_operation("set_api_base_url", api_base_url=url)
        return url
