"""Page session lifecycle tracking.

A ``SessionTracker`` mirrors one mounted tracking context on a page: it
emits ``page_view`` on mount, scroll milestones while active and
``session_end`` with the elapsed seconds on unmount. Transitions are plain
synchronous calls driven by lifecycle callbacks; submission is handed to an
``EventSink`` as fire-and-forget so a transition never blocks or raises.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable, MutableMapping
from typing import Any, Protocol

import httpx

from ..config import settings
from ..models.event import EngagementEventCreate, EventType
from ..models.session import SessionState, TrackingHookInput
from .clock import Clock, system_clock
from .event_recorder import EventRecorder

logger = logging.getLogger(__name__)

_SCROLL_EVENTS = {
    50: EventType.SCROLL_50,
    90: EventType.SCROLL_90,
}


class EventSink(Protocol):
    """Accepts events for best-effort delivery; must never raise."""

    def submit(self, event: EngagementEventCreate) -> None: ...


class AsyncEventSink:
    """Delivers each event in its own asyncio task.

    Failures are logged and dropped; there is no retry. Without a running
    event loop the event is dropped.
    """

    def __init__(self) -> None:
        self._pending: set[asyncio.Task] = set()

    def submit(self, event: EngagementEventCreate) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop; dropped {event.event_type} event")
            return

        task = loop.create_task(self._deliver(event))
        self._pending.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Analytics event submission failed: {type(error).__name__}: {error}")

    async def _deliver(self, event: EngagementEventCreate) -> None:
        raise NotImplementedError

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight submissions; failures are already logged."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


class RecorderEventSink(AsyncEventSink):
    """Submits events to an in-process ``EventRecorder``."""

    def __init__(self, recorder: EventRecorder):
        super().__init__()
        self.recorder = recorder

    async def _deliver(self, event: EngagementEventCreate) -> None:
        await self.recorder.record(event)


class HttpEventSink(AsyncEventSink):
    """Posts events to the ``/events`` ingestion endpoint."""

    def __init__(self, client: httpx.AsyncClient, url: str = "/events"):
        super().__init__()
        self.client = client
        self.url = url

    async def _deliver(self, event: EngagementEventCreate) -> None:
        response = await self.client.post(self.url, json=event.model_dump(mode="json"))
        response.raise_for_status()


class SessionContext:
    """Client-resident session identity.

    ``storage`` stands in for the browser's session storage and is shared by
    every tracker of the same browsing session.
    """

    def __init__(
        self,
        storage: MutableMapping[str, str] | None = None,
        storage_key: str | None = None,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.storage = storage if storage is not None else {}
        self.storage_key = storage_key or settings.session_storage_key
        self.id_factory = id_factory

    @property
    def session_id(self) -> str | None:
        return self.storage.get(self.storage_key)

    def ensure_session_id(self) -> tuple[str, bool]:
        """Return the session id and whether it was just created."""
        existing = self.storage.get(self.storage_key)
        if existing:
            return existing, False
        new_id = self.id_factory()
        self.storage[self.storage_key] = new_id
        return new_id, True


def scroll_depth_percent(scroll_y: float, viewport_height: float, document_height: float) -> float:
    """Percentage of the document seen so far, clamped to [0, 100]."""
    if document_height <= 0:
        return 0.0
    if document_height <= viewport_height:
        return 100.0
    depth = (scroll_y + viewport_height) * 100 / document_height
    return max(0.0, min(100.0, depth))


class SessionTracker:
    """Lifecycle of one tracked page: idle, active, terminated."""

    def __init__(
        self,
        hook: TrackingHookInput,
        context: SessionContext,
        sink: EventSink,
        clock: Clock = system_clock,
        user_id: str | None = None,
        path: str | None = None,
        scroll_thresholds: tuple[int, ...] | None = None,
    ):
        if scroll_thresholds is None:
            scroll_thresholds = tuple(settings.scroll_thresholds)
        unknown = [t for t in scroll_thresholds if t not in _SCROLL_EVENTS]
        if unknown:
            raise ValueError(f"No scroll event type for thresholds: {unknown}")

        self.hook = hook
        self.context = context
        self.sink = sink
        self.clock = clock
        self.user_id = user_id
        self.path = path
        self.scroll_thresholds = tuple(sorted(scroll_thresholds))

        self.state = SessionState.IDLE
        self.session_id: str | None = None
        self.mounted_at: float | None = None
        self.max_scroll_depth = 0.0
        self._fired_milestones: set[int] = set()

    def mount(self) -> None:
        """Start tracking; no-op when tracking is disabled or already mounted."""
        if not self.hook.enabled or self.state is not SessionState.IDLE:
            return

        self.session_id, created = self.context.ensure_session_id()
        self.mounted_at = self.clock()
        self.state = SessionState.ACTIVE

        if created:
            self._emit(EventType.SESSION_START)
        self._emit(EventType.PAGE_VIEW)

    def record_scroll(self, depth_percent: float) -> None:
        """Report the current scroll depth; fires each milestone once per mount."""
        if self.state is not SessionState.ACTIVE:
            return

        self.max_scroll_depth = max(self.max_scroll_depth, depth_percent)
        for threshold in self.scroll_thresholds:
            if threshold in self._fired_milestones or self.max_scroll_depth < threshold:
                continue
            self._fired_milestones.add(threshold)
            self._emit(_SCROLL_EVENTS[threshold], {"scroll_depth": threshold})

    def unmount(self) -> None:
        """Emit ``session_end``; safe to call from both pagehide and teardown."""
        if self.state is not SessionState.ACTIVE:
            return

        time_spent_seconds = round(self.clock() - (self.mounted_at or 0.0))
        self.state = SessionState.TERMINATED
        self._emit(EventType.SESSION_END, {"time_spent_seconds": time_spent_seconds})

    @property
    def time_spent_seconds(self) -> int:
        if self.mounted_at is None:
            return 0
        return round(self.clock() - self.mounted_at)

    def _emit(self, event_type: EventType, extra: dict[str, Any] | None = None) -> None:
        metadata: dict[str, Any] = {
            "path": self.path,
            "class_id": self.hook.class_id,
            "week_number": self.hook.week_number,
            **(extra or {}),
        }
        event = EngagementEventCreate(
            event_type=event_type,
            user_id=self.user_id,
            newsletter_id=self.hook.week_number,
            article_id=self.hook.article_id,
            session_id=self.session_id,
            metadata={key: value for key, value in metadata.items() if value is not None},
        )
        try:
            self.sink.submit(event)
        except Exception as e:
            logger.warning(f"Event sink rejected {event_type.value} event: {e}")
