"""Analytics snapshot data models."""

from datetime import UTC, date, datetime

from pydantic import BaseModel, Field


class MetricName:
    """Snapshot metric names."""

    OPEN_RATE = "open_rate"
    CLICK_RATE = "click_rate"
    AVG_TIME_SPENT = "avg_time_spent"
    TOTAL_VIEWS = "total_views"
    TOTAL_CLICKS = "total_clicks"


class SnapshotScope(BaseModel):
    """Scope of a snapshot; any key may be None."""

    newsletter_id: str | None = None
    article_id: str | None = None
    class_id: str | None = None


class AnalyticsSnapshot(BaseModel):
    """Pre-aggregated metric value for one day and scope."""

    snapshot_date: date
    newsletter_id: str | None = None
    article_id: str | None = None
    class_id: str | None = None
    metric_name: str
    metric_value: float
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def key(self) -> tuple[date, str | None, str | None, str | None, str]:
        """Uniqueness key; regenerating a snapshot with the same key overwrites it."""
        return (
            self.snapshot_date,
            self.newsletter_id,
            self.article_id,
            self.class_id,
            self.metric_name,
        )
