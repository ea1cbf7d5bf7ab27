"""Storage interface for the tracking pipeline.

Token verification, event recording and aggregation only talk to this
interface, so they stay independent of the storage engine. Implementations
must make each write a single atomic statement; no in-process locking is
expected from callers.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime

from ..models import (
    AnalyticsSnapshot,
    EngagementEvent,
    EngagementEventCreate,
    RevocationRecord,
    SnapshotScope,
)


class TrackingStore(ABC):
    """Abstract store for revocations, engagement events, snapshots and links."""

    async def connect(self) -> None:
        """Open connections and prepare the schema."""
        return None

    async def disconnect(self) -> None:
        """Release connections."""
        return None

    @abstractmethod
    async def ping(self) -> bool:
        """Return True when the backend answers."""

    # Revocations
    @abstractmethod
    async def find_revocation(self, token_hash: str) -> RevocationRecord | None:
        """Get the revocation row for a token hash."""

    @abstractmethod
    async def upsert_revocation(self, record: RevocationRecord) -> None:
        """Insert or overwrite the row for ``record.token_hash``."""

    @abstractmethod
    async def register_token(self, record: RevocationRecord) -> None:
        """Insert a row for an issued token; keep an existing row untouched."""

    @abstractmethod
    async def revoke_subject(self, user_id: str, now: datetime) -> int:
        """Mark every unexpired, unrevoked row of ``user_id`` revoked; return the count."""

    @abstractmethod
    async def prune_revocations(self, now: datetime) -> int:
        """Delete rows whose expiry has passed; return the count."""

    # Engagement events
    @abstractmethod
    async def find_recent_event(
        self,
        event_type: str,
        user_id: str | None,
        article_id: str | None,
        since: datetime,
    ) -> EngagementEvent | None:
        """Find an event with the same key created at or after ``since``.

        ``None`` values match ``None``.
        """

    @abstractmethod
    async def insert_event(
        self, event: EngagementEventCreate, created_at: datetime
    ) -> EngagementEvent:
        """Append an event and return the stored row."""

    @abstractmethod
    async def list_read_articles(
        self,
        user_id: str,
        newsletter_id: str | None,
        event_types: list[str],
    ) -> list[str]:
        """Distinct article ids with any of ``event_types`` for the user."""

    @abstractmethod
    async def list_events(
        self,
        start: datetime,
        end: datetime,
        scope: SnapshotScope,
    ) -> list[EngagementEvent]:
        """Events with ``start <= created_at < end`` within scope."""

    # Snapshots
    @abstractmethod
    async def upsert_snapshot(self, snapshot: AnalyticsSnapshot) -> None:
        """Insert or overwrite the snapshot with the same key."""

    @abstractmethod
    async def list_snapshots(
        self,
        start_date: date,
        end_date: date,
        scope: SnapshotScope,
    ) -> list[AnalyticsSnapshot]:
        """Snapshots between the dates (inclusive) matching the non-null scope keys."""

    # Tracked links
    @abstractmethod
    async def insert_link(self, link_id: str, url: str) -> None:
        """Store a click-tracking destination."""

    @abstractmethod
    async def get_link(self, link_id: str) -> str | None:
        """Destination URL for ``link_id``."""
