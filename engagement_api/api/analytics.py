"""Admin endpoints for analytics snapshots."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core import SnapshotAggregator, StorageError
from ..models import SnapshotGenerateRequest, SnapshotListResponse, SnapshotScope
from .deps import get_aggregator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/analytics", tags=["analytics"])


@router.post(
    "/snapshots",
    response_model=SnapshotListResponse,
    summary="Generate daily snapshots",
    description="""
Aggregate recorded events into one snapshot per day and metric.

Rates (`open_rate`, `click_rate`) are only computed when `sent_count` is
given. Regenerating a range overwrites the snapshots written before.
""",
)
async def generate_snapshots(
    generate_request: SnapshotGenerateRequest,
    aggregator: SnapshotAggregator = Depends(get_aggregator),
) -> SnapshotListResponse:
    """Generate snapshots for a date range and scope."""
    try:
        snapshots = await aggregator.generate(
            generate_request.start_date,
            generate_request.end_date,
            scope=generate_request.scope,
            sent_count=generate_request.sent_count,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        logger.error(f"Snapshot generation failed: {e}")
        raise HTTPException(status_code=503, detail="Analytics storage unavailable")

    return SnapshotListResponse(snapshots=snapshots, total=len(snapshots))


@router.get("/snapshots", response_model=SnapshotListResponse)
async def list_snapshots(
    start_date: date = Query(...),
    end_date: date | None = Query(default=None),
    newsletter_id: str | None = Query(default=None),
    article_id: str | None = Query(default=None),
    class_id: str | None = Query(default=None),
    aggregator: SnapshotAggregator = Depends(get_aggregator),
) -> SnapshotListResponse:
    """List stored snapshots for a date range and scope."""
    scope = SnapshotScope(newsletter_id=newsletter_id, article_id=article_id, class_id=class_id)
    try:
        snapshots = await aggregator.list_snapshots(start_date, end_date, scope)
    except StorageError as e:
        logger.error(f"Failed to list snapshots: {e}")
        raise HTTPException(status_code=503, detail="Analytics storage unavailable")

    return SnapshotListResponse(snapshots=snapshots, total=len(snapshots))
