# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from .core.config import is_running_tests, settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes.v1 import (
    bookings as bookings_v1,
    health as health_v1,
    payments as payments_v1,
    prometheus as prometheus_v1,
    tours as tours_v1,
    users as users_v1,
)

# Configure logging
logging.basicConfig(
    level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(
        f"Environment: {settings.environment}, receipt storage: {settings.receipt_storage_backend}"
    )
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


def _unique_operation_id(route: APIRoute) -> str:
    """Stable OpenAPI operation ids: <tag>_<function name>."""
    tag = route.tags[0] if route.tags else "default"
    return f"{tag}_{route.name}".replace("-", "_")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
    generate_unique_id_function=_unique_operation_id,
)
# Register unified error envelope handlers
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PATCH", "DELETE"],
    allow_headers=["*"],
)
logger.info("CORS allow_origins=%s", settings.cors_allowed_origins)

if settings.prometheus_enabled:
    app.add_middleware(PrometheusMiddleware)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

# Fixed paths (/my-bookings, /statistics, /bulk-approve) are declared before
# /{id} routes inside each router.
api_v1.include_router(bookings_v1.router, prefix="/tour-bookings")
api_v1.include_router(tours_v1.router, prefix="/tours")
api_v1.include_router(payments_v1.router, prefix="/payments")
api_v1.include_router(users_v1.router, prefix="/users")
api_v1.include_router(health_v1.router, prefix="/health")
api_v1.include_router(prometheus_v1.router, prefix="/metrics")

app.include_router(api_v1)
