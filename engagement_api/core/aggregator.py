"""Daily snapshot aggregation over recorded engagement events."""

import logging
from datetime import UTC, date, datetime, time, timedelta
from statistics import mean

from ..models.event import EngagementEvent, EventType
from ..models.snapshot import AnalyticsSnapshot, MetricName, SnapshotScope
from ..storage.base import TrackingStore
from ..telemetry import TelemetryEvents, track_event
from .clock import Clock, system_clock, utc_from_clock

logger = logging.getLogger(__name__)


def _distinct_users(events: list[EngagementEvent], event_type: EventType) -> int:
    return len({e.user_id for e in events if e.event_type == event_type and e.user_id})


def _time_spent_values(events: list[EngagementEvent]) -> list[float]:
    values = []
    for event in events:
        if event.event_type != EventType.SESSION_END:
            continue
        seconds = event.metadata.get("time_spent_seconds")
        # bool is an int subclass
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool) and seconds > 0:
            values.append(float(seconds))
    return values


class SnapshotAggregator:
    """Reduces raw events into per-day metric snapshots.

    Snapshots are upserted on ``(date, scope, metric)``, so regenerating the
    same range overwrites earlier values.
    """

    def __init__(self, store: TrackingStore, clock: Clock = system_clock):
        self.store = store
        self.clock = clock

    def compute_metrics(
        self, events: list[EngagementEvent], sent_count: int | None = None
    ) -> dict[str, float]:
        """Metric values for one day's events.

        Rates are reported whenever ``sent_count`` is positive, zero included.
        Counts and averages are omitted when there is nothing to count.
        """
        metrics: dict[str, float] = {}

        if sent_count:
            metrics[MetricName.OPEN_RATE] = _distinct_users(events, EventType.EMAIL_OPEN) / sent_count
            metrics[MetricName.CLICK_RATE] = (
                _distinct_users(events, EventType.LINK_CLICK) / sent_count
            )

        time_spent = _time_spent_values(events)
        if time_spent:
            metrics[MetricName.AVG_TIME_SPENT] = mean(time_spent)

        views = sum(1 for e in events if e.event_type == EventType.PAGE_VIEW)
        if views:
            metrics[MetricName.TOTAL_VIEWS] = float(views)

        clicks = sum(1 for e in events if e.event_type == EventType.LINK_CLICK)
        if clicks:
            metrics[MetricName.TOTAL_CLICKS] = float(clicks)

        return metrics

    async def generate(
        self,
        start_date: date,
        end_date: date | None = None,
        scope: SnapshotScope | None = None,
        sent_count: int | None = None,
    ) -> list[AnalyticsSnapshot]:
        """Generate snapshots for every day in ``[start_date, end_date]``.

        Args:
            start_date: First day (UTC)
            end_date: Last day, inclusive; defaults to ``start_date``
            scope: Newsletter/article/class restriction
            sent_count: Recipients the newsletter went to; rates need it

        Returns:
            The snapshots written

        Raises:
            StorageError: Backend failure
        """
        end_date = end_date or start_date
        if end_date < start_date:
            raise ValueError("end_date must not be before start_date")
        scope = scope or SnapshotScope()

        written: list[AnalyticsSnapshot] = []
        day = start_date
        while day <= end_date:
            day_start = datetime.combine(day, time.min, tzinfo=UTC)
            events = await self.store.list_events(day_start, day_start + timedelta(days=1), scope)

            for metric_name, value in self.compute_metrics(events, sent_count).items():
                snapshot = AnalyticsSnapshot(
                    snapshot_date=day,
                    newsletter_id=scope.newsletter_id,
                    article_id=scope.article_id,
                    class_id=scope.class_id,
                    metric_name=metric_name,
                    metric_value=value,
                    created_at=utc_from_clock(self.clock),
                )
                await self.store.upsert_snapshot(snapshot)
                written.append(snapshot)

            logger.debug(f"Aggregated {len(events)} events for {day.isoformat()}")
            day += timedelta(days=1)

        logger.info(
            f"Generated {len(written)} snapshots for {start_date.isoformat()}..{end_date.isoformat()}"
        )
        track_event(
            TelemetryEvents.SNAPSHOTS_GENERATED,
            {"snapshot_count": len(written), **scope.model_dump()},
        )
        return written

    async def list_snapshots(
        self,
        start_date: date,
        end_date: date | None = None,
        scope: SnapshotScope | None = None,
    ) -> list[AnalyticsSnapshot]:
        """Read stored snapshots back."""
        return await self.store.list_snapshots(
            start_date, end_date or start_date, scope or SnapshotScope()
        )
