"""Revocation of tracking tokens.

Only the SHA-256 hash of a token is stored. Rows carry the token's own expiry
so the prune sweep can drop them once the token would fail verification
anyway.
"""

import logging

from ..models.tracking import RevocationRecord, RevocationResult
from ..storage.base import TrackingStore
from ..telemetry import TelemetryEvents, track_event
from .clock import utc_from_clock
from .errors import StorageError
from .token_codec import TokenCodec, token_hash

logger = logging.getLogger(__name__)


class RevocationService:
    """Registers, revokes and prunes tracking token hashes."""

    def __init__(self, codec: TokenCodec, store: TrackingStore):
        self.codec = codec
        self.store = store

    def _record_for(self, token: str, is_revoked: bool) -> RevocationRecord:
        payload = self.codec.decode(token)
        return RevocationRecord(
            token_hash=token_hash(token),
            user_id=payload.subject,
            is_revoked=is_revoked,
            expires_at=payload.expires_at_datetime,
            created_at=utc_from_clock(self.codec.clock),
        )

    async def register(self, token: str) -> bool:
        """Record an issued token so bulk revocation can find it.

        Raises:
            MalformedTokenError: Token cannot be decoded
        """
        record = self._record_for(token, is_revoked=False)
        try:
            await self.store.register_token(record)
        except StorageError as e:
            logger.error(f"Failed to register tracking token: {e}")
            return False
        return True

    async def revoke(self, token: str) -> bool:
        """Revoke a token. Revoking twice is a success both times.

        Returns:
            True once the revoked row is stored, False on storage failure

        Raises:
            MalformedTokenError: Token cannot be decoded
        """
        record = self._record_for(token, is_revoked=True)
        try:
            await self.store.upsert_revocation(record)
        except StorageError as e:
            logger.error(f"Failed to revoke tracking token: {e}")
            return False

        logger.info(f"Revoked tracking token for subject {record.user_id}")
        track_event(TelemetryEvents.TOKEN_REVOKED, {"subject": record.user_id})
        return True

    async def revoke_all_for_subject(self, subject: str) -> RevocationResult:
        """Revoke every known, unexpired token of ``subject``.

        Nothing to revoke is a success with a count of zero.
        """
        try:
            count = await self.store.revoke_subject(subject, utc_from_clock(self.codec.clock))
        except StorageError as e:
            logger.error(f"Bulk revocation failed for subject {subject}: {e}")
            return RevocationResult(revoked_count=0, error="Revocation storage unavailable")

        logger.info(f"Revoked {count} tracking tokens for subject {subject}")
        track_event(
            TelemetryEvents.TOKENS_REVOKED_FOR_SUBJECT,
            {"subject": subject, "revoked_count": count},
        )
        return RevocationResult(revoked_count=count)

    async def prune(self) -> int:
        """Delete revocation rows whose token has expired.

        Raises:
            StorageError: Backend failure
        """
        pruned = await self.store.prune_revocations(utc_from_clock(self.codec.clock))
        track_event(TelemetryEvents.REVOCATIONS_PRUNED, {"pruned": pruned})
        return pruned
