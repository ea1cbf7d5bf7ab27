"""Tracking token verification.

Checks run cheapest first and stop at the first failure: structure,
signature, expiry, then the revocation lookup, which is the only step that
touches storage.
"""

import hmac
import logging

from ..models.tracking import TokenPayload, VerificationReason, VerificationResult
from ..storage.base import TrackingStore
from ..telemetry import TelemetryEvents, track_event
from .errors import (
    MalformedTokenError,
    SignatureInvalidError,
    StorageError,
    TokenError,
    TokenExpiredError,
    TokenRevokedError,
)
from .token_codec import TokenCodec, token_hash

logger = logging.getLogger(__name__)


class TokenVerifier:
    """Validates signature, expiry and revocation status of tracking tokens."""

    def __init__(self, codec: TokenCodec, store: TrackingStore):
        self.codec = codec
        self.store = store

    async def check(self, token: str) -> TokenPayload:
        """Verify a token and return its payload.

        Raises:
            MalformedTokenError: Structurally invalid token
            SignatureInvalidError: Signature mismatch
            TokenExpiredError: Token past its expiry
            TokenRevokedError: Token revoked
            StorageError: Revocation lookup failed
        """
        payload = self.codec.decode(token)

        signing_input, _, signature = token.rpartition(".")
        expected = self.codec.sign(signing_input)
        if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
            raise SignatureInvalidError()

        if self.codec.clock() > payload.expires_at:
            raise TokenExpiredError()

        record = await self.store.find_revocation(token_hash(token))
        if record is not None and record.is_revoked:
            raise TokenRevokedError()

        return payload

    async def verify(self, token: str) -> VerificationResult:
        """Verify a token without raising.

        A failed revocation lookup fails closed: the token is reported invalid.
        """
        try:
            payload = await self.check(token)
        except TokenError as e:
            self._log_rejection(e)
            return VerificationResult.rejected(e.reason)
        except StorageError:
            logger.error("Revocation lookup failed; rejecting token")
            track_event(
                TelemetryEvents.TOKEN_REJECTED,
                {"reason": VerificationReason.STORAGE_UNAVAILABLE.value},
            )
            return VerificationResult.rejected(VerificationReason.STORAGE_UNAVAILABLE)

        track_event(TelemetryEvents.TOKEN_VERIFIED, {"subject": payload.subject})
        return VerificationResult.ok(payload)

    @staticmethod
    def _log_rejection(error: TokenError) -> None:
        if isinstance(error, SignatureInvalidError):
            logger.warning("Tracking token with invalid signature rejected")
            track_event(TelemetryEvents.TOKEN_SIGNATURE_REJECTED)
        elif isinstance(error, TokenExpiredError):
            logger.debug("Expired tracking token rejected")
        elif isinstance(error, MalformedTokenError):
            logger.info(f"Malformed tracking token rejected: {error}")
        else:
            logger.info("Revoked tracking token rejected")

        track_event(TelemetryEvents.TOKEN_REJECTED, {"reason": error.reason.value})
