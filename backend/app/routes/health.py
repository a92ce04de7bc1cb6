# backend/app/routes/health.py
"""
Health check endpoints for the application.

These endpoints are used for monitoring application health and database
connectivity.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..api.dependencies.database import get_db
from ..core.config import settings
from ..core.constants import BRAND_NAME
from ..schemas.main_responses import HealthResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])

API_VERSION = "1.0.0"


@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)) -> HealthResponse:
    """
    Basic health check endpoint.

    Returns:
        Status indicating the service is running and whether the database answers.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = True
        status = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        db_status = False
        status = "degraded"

    return HealthResponse(
        status=status,
        service=f"{BRAND_NAME} API",
        version=API_VERSION,
        environment=settings.environment,
        checks={"database": db_status},
    )
