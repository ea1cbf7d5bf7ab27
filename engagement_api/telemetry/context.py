"""
Request Context and Correlation IDs

Request-scoped context kept in contextvars. Every telemetry event tracked
while a request is handled carries the request id and, on admin endpoints,
the authenticated admin.
"""

import uuid
from contextvars import ContextVar
from typing import Any

_request_context: ContextVar[dict[str, Any]] = ContextVar("request_context", default={})


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracing."""
    return str(uuid.uuid4())


def set_request_context(
    request_id: str,
    user_id: str | None = None,
    session_id: str | None = None,
    **kwargs: Any,
) -> None:
    """
    Set the request context for the current async context.

    Args:
        request_id: Correlation ID for request tracing
        user_id: Authenticated admin, if any; tracked recipients are never put here
        session_id: Analytics session id sent by the page, if any
        **kwargs: Additional context properties
    """
    context = {"request_id": request_id, "user_id": user_id or "anonymous", **kwargs}
    if session_id:
        context["session_id"] = session_id
    _request_context.set(context)


def get_request_context() -> dict[str, Any]:
    """Get the current request context."""
    return _request_context.get()


def clear_request_context() -> None:
    """Clear the request context for the current async context."""
    _request_context.set({})
