"""Health check and version endpoints."""

import logging
import time
from typing import Any

from fastapi import APIRouter, Depends

from .. import __version__
from ..config import settings
from ..models import HealthResponse, VersionResponse
from ..storage import TrackingStore
from .deps import get_tracking_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

# Track service start time
_start_time = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check(store: TrackingStore = Depends(get_tracking_store)) -> HealthResponse:
    """Health check endpoint."""
    uptime = time.time() - _start_time

    db_connected = False
    try:
        db_connected = await store.ping()
    except Exception as e:
        logger.error(f"Storage health check failed: {e}")

    seconds_total = uptime
    days = seconds_total // 86400
    seconds_remaining = seconds_total % 86400
    hours = seconds_remaining // 3600
    seconds_remaining = seconds_remaining % 3600
    minutes = seconds_remaining // 60
    seconds = seconds_remaining % 60

    return HealthResponse(
        status="healthy" if db_connected else "degraded",
        version=__version__,
        uptime=f"Days: {int(days)}, Hours: {int(hours)}, Minutes: {int(minutes)}, Seconds: {int(seconds)}",
        storage_backend=settings.storage_backend,
        database_connected=db_connected,
    )


@router.get("/version", response_model=VersionResponse)
async def get_version() -> VersionResponse:
    """Get version information."""
    return VersionResponse(service_version=__version__)


@router.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with service information."""
    return {
        "service": "Newsletter Engagement API",
        "version": __version__,
        "description": "Email open/click tracking and engagement analytics for the newsletter CMS",
        "docs": "/docs",
        "health": "/health",
    }
