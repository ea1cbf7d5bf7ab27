"""Main FastAPI application for the newsletter engagement service."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from . import __version__
from .api import (
    analytics_router,
    events_router,
    health_router,
    tokens_router,
    tracking_router,
)
from .api.deps import configure_services
from .config import settings
from .middleware import AuthMiddleware
from .storage import close_store, init_store
from .telemetry import (
    TelemetryEvents,
    TelemetryMiddleware,
    flush_telemetry,
    initialize_telemetry,
    track_event,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup and shutdown."""
    # Startup
    logger.info("Starting engagement service...")
    logger.info(f"Service version: {app.version}")
    logger.info(f"Host: {settings.service_host}:{settings.service_port}")

    initialize_telemetry()
    logger.info("Telemetry initialized")

    store = await init_store()
    logger.info(f"Storage initialized ({settings.storage_backend})")

    configure_services(app, store)
    track_event(TelemetryEvents.APP_STARTED, {"storage_backend": settings.storage_backend})
    logger.info("Engagement service started successfully")

    yield

    # Shutdown
    logger.info("Shutting down engagement service...")
    track_event(TelemetryEvents.APP_STOPPED)

    # Flush telemetry before shutdown
    flush_telemetry()
    logger.info("Telemetry flushed")

    await close_store()
    logger.info("Engagement service stopped")


# Create FastAPI application
app = FastAPI(
    title="Newsletter Engagement API",
    description="""
Engagement tracking for the newsletter CMS.

## Tracking

Outbound emails embed a signed, expiring tracking token in an open pixel and
in click-tracking links. Tokens are verified (signature, expiry, revocation)
before anything is recorded; the pixel and the redirect are served either way.

- `GET /track/open?t=<token>` - 1x1 open pixel
- `GET /track/click?t=<token>&to=<linkId>` - click redirect

## Events

Pages report session lifecycle events (page view, scroll depth, session end).
Identical events within a short window are collapsed.

- `POST /events` - Submit an event
- `GET /events/read-articles` - Articles read by a user

## Admin

- `POST /admin/tokens` - Issue a token with pixel and click URLs
- `POST /admin/tokens/verify` - Verify a token
- `POST /admin/tokens/revoke` - Revoke a token
- `POST /admin/tokens/revoke-subject` - Revoke all tokens of a user
- `POST /admin/tokens/prune` - Drop expired revocation rows
- `POST /admin/links` - Register a click-tracking link
- `POST /admin/analytics/snapshots` - Generate daily snapshots
- `GET /admin/analytics/snapshots` - List snapshots

### Health & Diagnostics
- `GET /health` - Health check
- `GET /version` - Version
""",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Telemetry middleware (first, to capture all requests)
app.add_middleware(TelemetryMiddleware)

# Authentication middleware (before CORS, to reject unauthorized requests early)
app.add_middleware(AuthMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Trusted host middleware (security)
if settings.service_host != "0.0.0.0":
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=[settings.service_host, "localhost", "127.0.0.1"],
    )

# Register routers
app.include_router(health_router)
app.include_router(tracking_router)
app.include_router(events_router)
app.include_router(tokens_router)
app.include_router(analytics_router)


def main() -> None:
    """Main entry point for running the service."""
    import uvicorn

    uvicorn.run(
        "engagement_api.main:app",
        host=settings.service_host,
        port=settings.service_port,
        workers=settings.service_workers,
        log_level=settings.log_level,
        reload=False,
    )


if __name__ == "__main__":
    main()
