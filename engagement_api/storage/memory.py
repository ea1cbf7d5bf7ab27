"""In-process store used for development and tests."""

import logging
import uuid
from datetime import date, datetime
from typing import Any

from ..models import (
    AnalyticsSnapshot,
    EngagementEvent,
    EngagementEventCreate,
    RevocationRecord,
    SnapshotScope,
)
from .base import TrackingStore

logger = logging.getLogger(__name__)


def matches_class(metadata: dict[str, Any], class_id: str) -> bool:
    """True when event metadata is tied to ``class_id``."""
    if metadata.get("class_id") == class_id:
        return True
    class_ids = metadata.get("class_ids")
    return isinstance(class_ids, list) and class_id in class_ids


class InMemoryStore(TrackingStore):
    """Dict and list backed store.

    Every method completes without awaiting anything else, so each call is
    atomic with respect to other coroutines on the same event loop.
    """

    def __init__(self) -> None:
        self.revocations: dict[str, RevocationRecord] = {}
        self.events: list[EngagementEvent] = []
        self.snapshots: dict[tuple, AnalyticsSnapshot] = {}
        self.links: dict[str, str] = {}
        self.connected = False

    async def connect(self) -> None:
        self.connected = True
        logger.info("In-memory tracking store ready")

    async def disconnect(self) -> None:
        self.connected = False

    async def ping(self) -> bool:
        return True

    # Revocations
    async def find_revocation(self, token_hash: str) -> RevocationRecord | None:
        record = self.revocations.get(token_hash)
        return record.model_copy() if record else None

    async def upsert_revocation(self, record: RevocationRecord) -> None:
        existing = self.revocations.get(record.token_hash)
        if existing:
            record = record.model_copy(update={"created_at": existing.created_at})
        self.revocations[record.token_hash] = record

    async def register_token(self, record: RevocationRecord) -> None:
        self.revocations.setdefault(record.token_hash, record)

    async def revoke_subject(self, user_id: str, now: datetime) -> int:
        count = 0
        for key, record in self.revocations.items():
            if record.user_id == user_id and not record.is_revoked and record.expires_at > now:
                self.revocations[key] = record.model_copy(update={"is_revoked": True})
                count += 1
        return count

    async def prune_revocations(self, now: datetime) -> int:
        expired = [key for key, record in self.revocations.items() if record.expires_at <= now]
        for key in expired:
            del self.revocations[key]
        return len(expired)

    # Engagement events
    async def find_recent_event(
        self,
        event_type: str,
        user_id: str | None,
        article_id: str | None,
        since: datetime,
    ) -> EngagementEvent | None:
        for event in reversed(self.events):
            if (
                event.event_type == event_type
                and event.user_id == user_id
                and event.article_id == article_id
                and event.created_at >= since
            ):
                return event
        return None

    async def insert_event(
        self, event: EngagementEventCreate, created_at: datetime
    ) -> EngagementEvent:
        stored = EngagementEvent(
            **event.model_dump(include=set(EngagementEventCreate.model_fields)),
            id=str(uuid.uuid4()),
            created_at=created_at,
        )
        self.events.append(stored)
        return stored

    async def list_read_articles(
        self,
        user_id: str,
        newsletter_id: str | None,
        event_types: list[str],
    ) -> list[str]:
        seen: dict[str, None] = {}
        for event in self.events:
            if event.user_id != user_id or event.article_id is None:
                continue
            if event.event_type not in event_types:
                continue
            if newsletter_id is not None and event.newsletter_id != newsletter_id:
                continue
            seen.setdefault(event.article_id, None)
        return list(seen)

    async def list_events(
        self,
        start: datetime,
        end: datetime,
        scope: SnapshotScope,
    ) -> list[EngagementEvent]:
        return [
            event
            for event in self.events
            if start <= event.created_at < end
            and (scope.newsletter_id is None or event.newsletter_id == scope.newsletter_id)
            and (scope.article_id is None or event.article_id == scope.article_id)
            and (scope.class_id is None or matches_class(event.metadata, scope.class_id))
        ]

    # Snapshots
    async def upsert_snapshot(self, snapshot: AnalyticsSnapshot) -> None:
        self.snapshots[snapshot.key] = snapshot

    async def list_snapshots(
        self,
        start_date: date,
        end_date: date,
        scope: SnapshotScope,
    ) -> list[AnalyticsSnapshot]:
        rows = [
            snap
            for snap in self.snapshots.values()
            if start_date <= snap.snapshot_date <= end_date
            and (scope.newsletter_id is None or snap.newsletter_id == scope.newsletter_id)
            and (scope.article_id is None or snap.article_id == scope.article_id)
            and (scope.class_id is None or snap.class_id == scope.class_id)
        ]
        return sorted(rows, key=lambda s: (s.snapshot_date, s.metric_name))

    # Tracked links
    async def insert_link(self, link_id: str, url: str) -> None:
        self.links[link_id] = url

    async def get_link(self, link_id: str) -> str | None:
        return self.links.get(link_id)
