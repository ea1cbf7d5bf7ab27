"""
Telemetry Middleware for FastAPI

Tracks every HTTP request with timing and status, and injects a correlation
id into the request context and the response headers.
"""

import time
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .context import clear_request_context, generate_correlation_id, set_request_context
from .events import TelemetryEvents
from .tracker import track_event, track_exception


class TelemetryMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for automatic request telemetry tracking.

    Query strings are never recorded: tracking URLs carry signed tokens.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process the request and track telemetry."""
        start_time = time.time()
        request_id = generate_correlation_id()

        set_request_context(
            request_id=request_id,
            user_id=getattr(request.state, "user_id", None),
            session_id=request.headers.get("X-Session-ID"),
        )
        request.state.request_id = request_id

        try:
            response = await call_next(request)

            duration_ms = (time.time() - start_time) * 1000
            track_event(
                TelemetryEvents.REQUEST_COMPLETED,
                {
                    "endpoint": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )

            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            track_exception(
                e,
                {
                    "endpoint": request.url.path,
                    "method": request.method,
                    "duration_ms": duration_ms,
                },
            )
            track_event(
                TelemetryEvents.REQUEST_FAILED,
                {
                    "endpoint": request.url.path,
                    "method": request.method,
                    "duration_ms": duration_ms,
                    "error_type": type(e).__name__,
                },
            )
            raise

        finally:
            clear_request_context()
