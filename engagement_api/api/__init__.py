"""API endpoints for the engagement tracking service."""

from .analytics import router as analytics_router
from .events import router as events_router
from .health import router as health_router
from .tokens import router as tokens_router
from .tracking import router as tracking_router

__all__ = [
    "tracking_router",
    "events_router",
    "tokens_router",
    "analytics_router",
    "health_router",
]
