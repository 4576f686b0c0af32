"""
Report Come Play Backend — Health Check Routes
================================================

What:  GET / (banner) and GET /health (dependency probe).
Who:   Load balancers, Docker health checks, uptime monitors.

Status levels:
    healthy    database reachable (HTTP 200)
    unhealthy  database unreachable (HTTP 503, stop routing traffic)

Storage and email are reported as configured values; probing them on
every health check would spend upstream quota.
"""

import logging
import time

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from reportcomeplay import __version__
from reportcomeplay.config import settings
from reportcomeplay.database import get_db_session
from reportcomeplay.schemas.common import BannerResponse, HealthResponse
from reportcomeplay.services.email_service import email_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_model=BannerResponse, summary="API banner")
async def banner() -> BannerResponse:
    return BannerResponse(message="Report Come Play API is running", version=__version__)


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> HealthResponse:
    """Runs SELECT 1 against the database and reports configuration state."""
    db_status = "connected"
    overall = "healthy"

    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=settings.storage_backend,
        email="configured" if email_service.configured else "disabled",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
