"""Engagement event ingestion endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core import EventRecorder, StorageError
from ..models import EngagementEventCreate, ReadArticlesResponse, RecordResult
from ..telemetry import TelemetryEvents, track_event
from .deps import get_recorder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


@router.post(
    "",
    response_model=RecordResult,
    status_code=202,
    summary="Submit an engagement event",
    description="""
Ingestion endpoint for the page session tracker.

Identical events (same type, user and article) inside the dedup window are
collapsed and answered with `accepted: false`. Recording failures are logged
and also answered with `accepted: false`; clients never retry.
""",
)
async def submit_event(
    event: EngagementEventCreate,
    recorder: EventRecorder = Depends(get_recorder),
) -> RecordResult:
    """Record one engagement event."""
    try:
        return await recorder.record(event)
    except StorageError as e:
        logger.error(f"Failed to record {event.event_type} event: {e}")
        track_event(TelemetryEvents.EVENT_RECORD_FAILED, {"event_type": event.event_type})
        return RecordResult(accepted=False)


@router.get("/read-articles", response_model=ReadArticlesResponse)
async def get_read_articles(
    user_id: str = Query(..., min_length=1),
    newsletter_id: str | None = Query(default=None),
    recorder: EventRecorder = Depends(get_recorder),
) -> ReadArticlesResponse:
    """Articles the user has viewed, optionally within one newsletter."""
    try:
        article_ids = await recorder.get_read_articles(user_id, newsletter_id)
    except StorageError as e:
        logger.error(f"Failed to load read articles: {e}")
        raise HTTPException(status_code=503, detail="Event storage unavailable")

    return ReadArticlesResponse(
        user_id=user_id, newsletter_id=newsletter_id, article_ids=article_ids
    )
