"""Database management with PostgreSQL via asyncpg."""

import json
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any

import asyncpg

from ..config import settings
from ..core.errors import StorageError
from ..models import (
    AnalyticsSnapshot,
    EngagementEvent,
    EngagementEventCreate,
    RevocationRecord,
    SnapshotScope,
)
from .base import TrackingStore
from .memory import InMemoryStore

logger = logging.getLogger(__name__)


def _affected_rows(status: str | None) -> int:
    """Extract the row count from a status string like "UPDATE 3"."""
    return int(status.split()[-1]) if status else 0


def _json_field(value: Any) -> dict[str, Any]:
    if isinstance(value, str):
        return json.loads(value)
    return value or {}


class Database(TrackingStore):
    """Async PostgreSQL store using asyncpg."""

    def __init__(self, db_url: str):
        """Initialize database with connection URL."""
        self.db_url = db_url
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Establish database connection pool and initialize schema."""
        if self._pool is not None:
            return

        try:
            self._pool = await asyncpg.create_pool(
                self.db_url,
                min_size=settings.database_pool_min_size,
                max_size=settings.database_pool_max_size,
                command_timeout=60,
            )

            from .schema import INIT_SCHEMA

            async with self._pool.acquire() as conn:
                await conn.execute(INIT_SCHEMA)
        except (asyncpg.PostgresError, OSError) as e:
            raise StorageError(f"Database connection failed: {type(e).__name__}") from e

        logger.info(f"Database connected: {self.db_url.split('@')[-1]}")  # Don't log password

    async def disconnect(self) -> None:
        """Close database connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database disconnected")

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a pooled connection, wrapping driver errors in StorageError."""
        if not self._pool:
            raise StorageError("Database not connected")

        try:
            async with self._pool.acquire() as conn:
                yield conn
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error(f"Database operation failed: {type(e).__name__}: {e}")
            raise StorageError(f"Database operation failed: {type(e).__name__}") from e

    async def ping(self) -> bool:
        async with self._connection() as conn:
            return await conn.fetchval("SELECT 1") == 1

    # Revocation operations
    async def find_revocation(self, token_hash: str) -> RevocationRecord | None:
        """Get the revocation row for a token hash."""
        async with self._connection() as conn:
            row = await conn.fetchrow(
                """
                SELECT token_hash, user_id, is_revoked, expires_at, created_at
                FROM tracking_tokens
                WHERE token_hash = $1
                """,
                token_hash,
            )

        return RevocationRecord(**dict(row)) if row else None

    async def upsert_revocation(self, record: RevocationRecord) -> None:
        """Insert or overwrite a revocation row."""
        async with self._connection() as conn:
            await conn.execute(
                """
                INSERT INTO tracking_tokens (token_hash, user_id, is_revoked, expires_at)
                VALUES ($1, $2, $3, $4)
                ON CONFLICT (token_hash) DO UPDATE
                SET is_revoked = EXCLUDED.is_revoked,
                    expires_at = EXCLUDED.expires_at
                """,
                record.token_hash,
                record.user_id,
                record.is_revoked,
                record.expires_at,
            )

    async def register_token(self, record: RevocationRecord) -> None:
        """Record an issued token, keeping any existing row."""
        async with self._connection() as conn:
            await conn.execute(
                """
                INSERT INTO tracking_tokens (token_hash, user_id, is_revoked, expires_at)
                VALUES ($1, $2, $3, $4)
                ON CONFLICT (token_hash) DO NOTHING
                """,
                record.token_hash,
                record.user_id,
                record.is_revoked,
                record.expires_at,
            )

    async def revoke_subject(self, user_id: str, now: datetime) -> int:
        """Revoke every live token of a subject in one statement."""
        async with self._connection() as conn:
            result = await conn.execute(
                """
                UPDATE tracking_tokens
                SET is_revoked = TRUE
                WHERE user_id = $1 AND is_revoked = FALSE AND expires_at > $2
                """,
                user_id,
                now,
            )

        return _affected_rows(result)

    async def prune_revocations(self, now: datetime) -> int:
        """Delete expired token rows."""
        async with self._connection() as conn:
            result = await conn.execute(
                "DELETE FROM tracking_tokens WHERE expires_at <= $1",
                now,
            )

        deleted = _affected_rows(result)
        logger.info(f"Pruned {deleted} expired tracking token rows")
        return deleted

    # Event operations
    @staticmethod
    def _event_from_row(row: asyncpg.Record) -> EngagementEvent:
        return EngagementEvent(
            id=str(row["id"]),
            user_id=row["user_id"],
            newsletter_id=row["newsletter_id"],
            article_id=row["article_id"],
            session_id=row["session_id"],
            event_type=row["event_type"],
            metadata=_json_field(row["metadata"]),
            created_at=row["created_at"],
        )

    async def find_recent_event(
        self,
        event_type: str,
        user_id: str | None,
        article_id: str | None,
        since: datetime,
    ) -> EngagementEvent | None:
        """Most recent matching event created at or after ``since``."""
        async with self._connection() as conn:
            row = await conn.fetchrow(
                """
                SELECT * FROM analytics_events
                WHERE event_type = $1
                  AND user_id IS NOT DISTINCT FROM $2::text
                  AND article_id IS NOT DISTINCT FROM $3::text
                  AND created_at >= $4
                ORDER BY created_at DESC
                LIMIT 1
                """,
                event_type,
                user_id,
                article_id,
                since,
            )

        return self._event_from_row(row) if row else None

    async def insert_event(
        self, event: EngagementEventCreate, created_at: datetime
    ) -> EngagementEvent:
        """Append an engagement event."""
        event_id = uuid.uuid4()
        async with self._connection() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO analytics_events (
                    id, user_id, newsletter_id, article_id,
                    session_id, event_type, metadata, created_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7::jsonb, $8)
                RETURNING *
                """,
                event_id,
                event.user_id,
                event.newsletter_id,
                event.article_id,
                event.session_id,
                event.event_type,
                json.dumps(event.metadata, default=str),  # Convert to JSON string for JSONB
                created_at,
            )

        logger.debug(f"Inserted {event.event_type} event: {event_id}")
        return self._event_from_row(row)

    async def list_read_articles(
        self,
        user_id: str,
        newsletter_id: str | None,
        event_types: list[str],
    ) -> list[str]:
        """Distinct article ids in first-seen order."""
        async with self._connection() as conn:
            rows = await conn.fetch(
                """
                SELECT article_id, MIN(created_at) AS first_seen
                FROM analytics_events
                WHERE user_id = $1
                  AND article_id IS NOT NULL
                  AND event_type = ANY($2::text[])
                  AND ($3::text IS NULL OR newsletter_id = $3::text)
                GROUP BY article_id
                ORDER BY first_seen
                """,
                user_id,
                event_types,
                newsletter_id,
            )

        return [row["article_id"] for row in rows]

    async def list_events(
        self,
        start: datetime,
        end: datetime,
        scope: SnapshotScope,
    ) -> list[EngagementEvent]:
        """Events in ``[start, end)`` within scope."""
        async with self._connection() as conn:
            rows = await conn.fetch(
                """
                SELECT * FROM analytics_events
                WHERE created_at >= $1 AND created_at < $2
                  AND ($3::text IS NULL OR newsletter_id = $3::text)
                  AND ($4::text IS NULL OR article_id = $4::text)
                  AND (
                      $5::text IS NULL
                      OR metadata->>'class_id' = $5::text
                      OR metadata->'class_ids' ? $5::text
                  )
                ORDER BY created_at
                """,
                start,
                end,
                scope.newsletter_id,
                scope.article_id,
                scope.class_id,
            )

        return [self._event_from_row(row) for row in rows]

    # Snapshot operations
    async def upsert_snapshot(self, snapshot: AnalyticsSnapshot) -> None:
        """Insert or overwrite one snapshot row."""
        async with self._connection() as conn:
            await conn.execute(
                """
                INSERT INTO analytics_snapshots (
                    snapshot_date, newsletter_id, article_id, class_id,
                    metric_name, metric_value, created_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                ON CONFLICT ON CONSTRAINT uq_analytics_snapshots_key DO UPDATE
                SET metric_value = EXCLUDED.metric_value,
                    created_at = EXCLUDED.created_at
                """,
                snapshot.snapshot_date,
                snapshot.newsletter_id,
                snapshot.article_id,
                snapshot.class_id,
                snapshot.metric_name,
                snapshot.metric_value,
                snapshot.created_at,
            )

    async def list_snapshots(
        self,
        start_date: date,
        end_date: date,
        scope: SnapshotScope,
    ) -> list[AnalyticsSnapshot]:
        """Snapshots in the inclusive date range matching the given scope keys."""
        async with self._connection() as conn:
            rows = await conn.fetch(
                """
                SELECT snapshot_date, newsletter_id, article_id, class_id,
                       metric_name, metric_value, created_at
                FROM analytics_snapshots
                WHERE snapshot_date BETWEEN $1 AND $2
                  AND ($3::text IS NULL OR newsletter_id = $3::text)
                  AND ($4::text IS NULL OR article_id = $4::text)
                  AND ($5::text IS NULL OR class_id = $5::text)
                ORDER BY snapshot_date, metric_name
                """,
                start_date,
                end_date,
                scope.newsletter_id,
                scope.article_id,
                scope.class_id,
            )

        return [
            AnalyticsSnapshot(
                snapshot_date=row["snapshot_date"],
                newsletter_id=row["newsletter_id"],
                article_id=row["article_id"],
                class_id=row["class_id"],
                metric_name=row["metric_name"],
                metric_value=float(row["metric_value"]),
                created_at=row["created_at"],
            )
            for row in rows
        ]

    # Link operations
    async def insert_link(self, link_id: str, url: str) -> None:
        """Store a click-tracking destination."""
        async with self._connection() as conn:
            await conn.execute(
                "INSERT INTO tracked_links (link_id, url) VALUES ($1, $2)",
                link_id,
                url,
            )

    async def get_link(self, link_id: str) -> str | None:
        """Destination URL for a link id."""
        async with self._connection() as conn:
            return await conn.fetchval("SELECT url FROM tracked_links WHERE link_id = $1", link_id)


# Global store instance
_store: TrackingStore | None = None


async def init_store() -> TrackingStore:
    """Initialize and return the global store for the configured backend."""
    global _store
    if _store is None:
        if settings.storage_backend == "memory":
            store: TrackingStore = InMemoryStore()
        else:
            store = Database(settings.get_database_url())
        await store.connect()
        _store = store

    return _store


async def get_store() -> TrackingStore:
    """Get store instance (dependency injection).

    Auto-initializes if not already initialized (useful for tests).
    """
    global _store
    if _store is None:
        _store = await init_store()
    return _store


async def close_store() -> None:
    """Disconnect and forget the global store."""
    global _store
    if _store is not None:
        await _store.disconnect()
        _store = None
