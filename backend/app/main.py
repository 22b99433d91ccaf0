# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import is_running_tests, settings
from .core.constants import (
    ALLOWED_ORIGINS,
    API_DESCRIPTION,
    API_TITLE,
    API_VERSION,
    BRAND_NAME,
    LOG_FORMAT,
)
from .errors import register_error_handlers
from .routes.v1 import booking_debug as booking_debug_v1, bookings as bookings_v1
from .routes.v1 import health as health_v1, prometheus as prometheus_v1

# Configure logging
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    if not settings.calcom_enabled:
        logger.warning("CALCOM_API_KEY not set; availability will use weekly schedules only")
    if not settings.stripe_enabled:
        logger.warning("STRIPE_SECRET_KEY not set; using the mock payment gateway")
    if settings.debug:
        logger.warning("DEBUG is enabled; diagnostic routes are mounted and errors include details")
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    # Register unified error envelope handlers
    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    api_v1 = APIRouter(prefix="/api/v1")
    if settings.debug:
        api_v1.include_router(booking_debug_v1.router, prefix="/booking")
    api_v1.include_router(bookings_v1.router, prefix="/booking")

    app.include_router(api_v1)
    app.include_router(health_v1.router)
    app.include_router(prometheus_v1.router)
    return app


app = create_app()
