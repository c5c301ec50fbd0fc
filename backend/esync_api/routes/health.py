"""
eSync+ API — Health Check and Banner Routes
============================================

What:  GET /health for monitoring and container probes, plus the two small
       public routes the edge API always had: GET / (banner) and
       GET /api/hello.
How:   /health runs lightweight checks against each dependency.

Status levels:
    - healthy:   database reachable, storage writable
    - degraded:  storage not writable (uploads fail, catalog works)
    - unhealthy: database unreachable
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from esync_api import __version__
from esync_api.database import get_db_session
from esync_api.schemas.common import HealthResponse, HelloResponse
from esync_api.services.storage_service import StorageService, get_storage_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Uptime is measured from module import
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the backend service and its dependencies. "
        "Used by container health checks and monitoring."
    ),
)
async def health_check(
    db: AsyncSession = Depends(get_db_session),
    storage: StorageService = Depends(get_storage_service),
) -> HealthResponse:
    """
    Check database and storage.

    Check details:
        Database: SELECT 1 on the request session
        Storage:  the bucket root exists and is writable
    """
    db_status = "connected"
    storage_status = "writable"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Storage ─────────────────────────────────────────────────────
    if not storage.is_writable():
        storage_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall
        logger.warning("Health check: storage root %s is not writable", storage.storage_root)

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )


@router.get("/", response_class=PlainTextResponse, summary="Service banner")
async def banner() -> str:
    return f"eSync+ API {__version__}"


@router.get("/api/hello", response_model=HelloResponse, summary="Connectivity check for the console")
async def hello() -> HelloResponse:
    return HelloResponse(message="Hello from eSync+ API", timestamp=datetime.now(timezone.utc))
