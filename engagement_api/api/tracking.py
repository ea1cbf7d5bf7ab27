"""Email open pixel and click redirect endpoints.

Both endpoints answer the same way whatever happens to the token: the pixel
is always served and a click always redirects somewhere safe. Verification
and recording problems only show up in the logs.
"""

import base64
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import RedirectResponse

from ..config import settings
from ..core import EventRecorder, LinkResolver, TokenVerifier, TrackingError
from ..models import EngagementEventCreate, EventType, VerificationResult
from ..telemetry import TelemetryEvents, track_event
from .deps import get_link_resolver, get_recorder, get_verifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/track", tags=["tracking"])

# 1x1 transparent GIF
PIXEL_GIF = base64.b64decode("R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7")

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _event_from_token(
    result: VerificationResult, event_type: EventType, request: Request, **extra: Any
) -> EngagementEventCreate:
    """Build an event from the verified token context."""
    context = result.context
    metadata: dict[str, Any] = {"user_agent": request.headers.get("user-agent"), **extra}
    for key in ("class_id", "class_ids"):
        if key in context:
            metadata[key] = context[key]

    return EngagementEventCreate(
        event_type=event_type,
        user_id=result.subject,
        newsletter_id=context.get("newsletter_id"),
        article_id=context.get("article_id"),
        metadata={key: value for key, value in metadata.items() if value is not None},
    )


async def _record_quietly(recorder: EventRecorder, event: EngagementEventCreate) -> None:
    try:
        await recorder.record(event)
    except TrackingError as e:
        logger.error(f"Failed to record {event.event_type} event: {e}")
        track_event(TelemetryEvents.EVENT_RECORD_FAILED, {"event_type": event.event_type})


def _pixel_response() -> Response:
    return Response(content=PIXEL_GIF, media_type="image/gif", headers=NO_CACHE_HEADERS)


@router.get("/open", operation_id="track_open")
async def track_open(
    request: Request,
    t: str | None = Query(default=None, description="Tracking token"),
    verifier: TokenVerifier = Depends(get_verifier),
    recorder: EventRecorder = Depends(get_recorder),
) -> Response:
    """Serve the open-tracking pixel and record ``email_open`` for valid tokens."""
    if t:
        result = await verifier.verify(t)
        if result.valid:
            await _record_quietly(
                recorder, _event_from_token(result, EventType.EMAIL_OPEN, request)
            )

    return _pixel_response()


@router.head("/open", operation_id="track_open_head")
async def track_open_head() -> Response:
    """Pixel headers only; prefetching scanners use HEAD, so nothing is recorded."""
    return _pixel_response()


@router.get("/click")
async def track_click(
    request: Request,
    t: str | None = Query(default=None, description="Tracking token"),
    to: str | None = Query(default=None, description="Link id or destination URL"),
    verifier: TokenVerifier = Depends(get_verifier),
    recorder: EventRecorder = Depends(get_recorder),
    links: LinkResolver = Depends(get_link_resolver),
) -> RedirectResponse:
    """Record ``link_click`` and redirect to the link destination."""
    fallback = RedirectResponse(
        settings.tracking_default_redirect_url, status_code=302, headers=NO_CACHE_HEADERS
    )
    if not t:
        return fallback

    result = await verifier.verify(t)
    if not result.valid:
        return fallback

    try:
        target_url = await links.resolve(to)
    except TrackingError as e:
        logger.error(f"Link lookup failed: {e}")
        return fallback
    if target_url is None:
        return fallback

    await _record_quietly(
        recorder,
        _event_from_token(result, EventType.LINK_CLICK, request, target_url=target_url),
    )
    return RedirectResponse(target_url, status_code=302, headers=NO_CACHE_HEADERS)
