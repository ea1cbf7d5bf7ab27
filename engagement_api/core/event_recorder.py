"""Engagement event recording with time-window deduplication."""

import logging
from datetime import timedelta

from ..config import MAX_DEDUP_WINDOW_SECONDS, MIN_DEDUP_WINDOW_SECONDS
from ..models.event import READ_EVENT_TYPES, EngagementEventCreate, RecordResult
from ..storage.base import TrackingStore
from ..telemetry import TelemetryEvents, track_event
from .clock import Clock, system_clock, utc_from_clock

logger = logging.getLogger(__name__)

DEFAULT_DEDUP_WINDOW = timedelta(seconds=10)


class EventRecorder:
    """Persists engagement events, collapsing repeats inside a time window.

    The dedup key is ``(event_type, user_id, article_id)``; ``session_id`` is
    deliberately not part of it. Dedup is read-then-insert without locks, so
    near-simultaneous duplicates under concurrent load can both be accepted.
    """

    def __init__(
        self,
        store: TrackingStore,
        dedup_window: timedelta = DEFAULT_DEDUP_WINDOW,
        clock: Clock = system_clock,
    ):
        seconds = dedup_window.total_seconds()
        if not MIN_DEDUP_WINDOW_SECONDS <= seconds <= MAX_DEDUP_WINDOW_SECONDS:
            raise ValueError(
                f"Dedup window must be between {MIN_DEDUP_WINDOW_SECONDS:g}s "
                f"and {MAX_DEDUP_WINDOW_SECONDS:g}s, got {seconds:g}s"
            )
        self.store = store
        self.dedup_window = dedup_window
        self.clock = clock

    async def record(self, event: EngagementEventCreate) -> RecordResult:
        """Record an event unless an identical one was seen within the window.

        Raises:
            StorageError: Backend failure; callers on tracking paths log and drop it
        """
        now = utc_from_clock(self.clock)
        duplicate = await self.store.find_recent_event(
            event.event_type,
            event.user_id,
            event.article_id,
            since=now - self.dedup_window,
        )
        if duplicate is not None:
            logger.debug(f"Duplicate {event.event_type} event skipped")
            track_event(TelemetryEvents.EVENT_DEDUPLICATED, {"event_type": event.event_type})
            return RecordResult(accepted=False)

        stored = await self.store.insert_event(event, created_at=now)
        track_event(
            TelemetryEvents.EVENT_RECORDED,
            {"event_type": event.event_type, "event_id": stored.id},
        )
        return RecordResult(accepted=True, id=stored.id)

    async def get_read_articles(self, user_id: str, newsletter_id: str | None = None) -> list[str]:
        """Article ids the user has viewed or engaged with more strongly.

        Raises:
            StorageError: Backend failure
        """
        return await self.store.list_read_articles(
            user_id,
            newsletter_id,
            [event_type.value for event_type in READ_EVENT_TYPES],
        )
