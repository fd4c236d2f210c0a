# backend/servicebay/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, FastAPI
from fastapi.routing import APIRoute

from .api.dependencies import require_admin
from .core.config import is_running_tests, settings
from .database import init_db
from .errors import register_error_handlers
from .routes.v1 import (
    bookings as bookings_v1,
    catalog as catalog_v1,
    clients as clients_v1,
    health as health_v1,
    news as news_v1,
    notifications as notifications_v1,
    profile as profile_v1,
    prometheus as prometheus_v1,
    rewards as rewards_v1,
    slots as slots_v1,
)
from .routes.v1.admin import (
    bookings as admin_bookings_v1,
    catalog as admin_catalog_v1,
    clients as admin_clients_v1,
    news as admin_news_v1,
    notifications as admin_notifications_v1,
    rewards as admin_rewards_v1,
    settings as admin_settings_v1,
)

API_TITLE = "ServiceBay API"
API_VERSION = "0.1.0"

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(
        f"{API_TITLE} starting up (environment={settings.environment}, "
        f"timezone={settings.business_timezone})"
    )
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    init_db()
    if settings.admin_api_key.get_secret_value() == "change-me":
        logger.warning("admin_api_key is the default value; set ADMIN_API_KEY")
    yield
    logger.info(f"{API_TITLE} shutting down")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
    generate_unique_id_function=_unique_operation_id,
)

register_error_handlers(app)

# Client API
api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(clients_v1.router, prefix="/clients")
api_v1.include_router(profile_v1.router, prefix="/profile")
api_v1.include_router(catalog_v1.router)
api_v1.include_router(slots_v1.router, prefix="/slots")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(notifications_v1.router, prefix="/notifications")
api_v1.include_router(news_v1.router, prefix="/news")
api_v1.include_router(rewards_v1.router, prefix="/rewards")

# Admin console, every route gated by X-Admin-Key
admin_v1 = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])
admin_v1.include_router(admin_bookings_v1.router, prefix="/bookings")
admin_v1.include_router(admin_catalog_v1.router)
admin_v1.include_router(admin_clients_v1.router, prefix="/clients")
admin_v1.include_router(admin_notifications_v1.router, prefix="/notifications")
admin_v1.include_router(admin_news_v1.router, prefix="/news")
admin_v1.include_router(admin_rewards_v1.router, prefix="/rewards")
admin_v1.include_router(admin_settings_v1.router, prefix="/settings")
api_v1.include_router(admin_v1)

app.include_router(api_v1)
app.include_router(health_v1.router)
app.include_router(prometheus_v1.router)
