# backend/app/main.py
"""
FastAPI application for the PNW Sauna booking platform.

Wires routers, middleware, error handlers and logging. Business logic lives
in the service layer under ``app.services``.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.constants import BRAND_NAME
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes import (
    admin,
    bookings,
    enquiries,
    health,
    memberships,
    prometheus,
    stripe_webhooks,
    time_slots,
    waivers,
)
from .schemas.main_responses import RootResponse

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = "Community and private sauna session booking"
API_VERSION = health.API_VERSION


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}")
    if not settings.stripe_configured:
        logger.warning("Stripe is not configured; paid bookings will fail until it is")
    yield
    logger.info(f"{API_TITLE} shutting down...")


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
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST"],
    allow_headers=["*"],
)
app.add_middleware(PrometheusMiddleware)

# Infrastructure routes (unversioned)
app.include_router(health.router)
app.include_router(prometheus.router)
app.include_router(stripe_webhooks.router)

# Application routes
app.include_router(time_slots.router, prefix="/api")
app.include_router(bookings.router, prefix="/api")
app.include_router(waivers.router, prefix="/api")
app.include_router(memberships.router, prefix="/api")
app.include_router(enquiries.router, prefix="/api")
app.include_router(admin.router, prefix="/api")


@app.get("/", response_model=RootResponse)
def read_root() -> RootResponse:
    """Root endpoint - API information"""
    return RootResponse(message=f"Welcome to the {API_TITLE}", version=API_VERSION, docs="/docs")
