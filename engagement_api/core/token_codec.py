"""Signed tracking token codec.

Tokens are compact HS256 JWS strings: ``header.payload.signature``, each
segment base64url-encoded. The payload carries the subject, an opaque context
mapping and the issue/expiry timestamps, so an unrevoked token can be checked
without touching storage.
"""

import hashlib
import json
import uuid
from datetime import timedelta
from typing import Any

import jwt
from jwt.algorithms import HMACAlgorithm
from jwt.utils import base64url_decode, base64url_encode
from pydantic import ValidationError

from ..models.tracking import TokenPayload
from .clock import Clock, system_clock
from .errors import MalformedTokenError

ALGORITHM = "HS256"
DEFAULT_TTL = timedelta(days=14)


def token_hash(token: str) -> str:
    """SHA-256 hex digest of the full token string; used as the storage key."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TokenCodec:
    """Encodes and decodes tracking tokens with a server-held secret."""

    def __init__(
        self,
        secret: str,
        default_ttl: timedelta = DEFAULT_TTL,
        clock: Clock = system_clock,
    ):
        """Initialize the codec.

        Args:
            secret: HMAC key; must be non-empty
            default_ttl: Lifetime used when ``encode`` gets no ttl
            clock: Source of the current Unix time
        """
        if not secret:
            raise ValueError("Tracking secret must be configured")
        self._hmac = HMACAlgorithm(HMACAlgorithm.SHA256)
        self._key = self._hmac.prepare_key(secret)
        self._secret = secret
        self.default_ttl = default_ttl
        self.clock = clock

    def encode(
        self,
        subject: str,
        context: dict[str, Any] | None = None,
        ttl: timedelta | float | None = None,
    ) -> str:
        """Create a signed token for ``subject``.

        Args:
            subject: Tracked individual (user id)
            context: Opaque mapping carried in the token
            ttl: Lifetime as timedelta or seconds; may be negative

        Returns:
            Compact token string
        """
        if ttl is None:
            ttl = self.default_ttl
        ttl_seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)

        now = int(self.clock())
        payload = TokenPayload(
            subject=str(subject),
            context=dict(context or {}),
            issued_at=now,
            expires_at=now + int(ttl_seconds),
            token_id=uuid.uuid4().hex,
        )
        return jwt.encode(payload.to_claims(), self._secret, algorithm=ALGORITHM)

    def decode(self, token: str) -> TokenPayload:
        """Decode the payload WITHOUT verifying the signature.

        Only the header and payload segments are decoded; the signature
        segment is left to the verifier as an opaque string.

        Raises:
            MalformedTokenError: Wrong segment count or undecodable payload
        """
        if not isinstance(token, str) or token.count(".") != 2:
            raise MalformedTokenError("Token must have three segments")

        header_segment, payload_segment, _ = token.split(".")
        try:
            header = json.loads(base64url_decode(header_segment))
            claims = json.loads(base64url_decode(payload_segment))
        except ValueError as e:
            raise MalformedTokenError("Token payload is not decodable") from e

        if not isinstance(header, dict) or header.get("alg") != ALGORITHM:
            raise MalformedTokenError("Unsupported token algorithm")

        try:
            return TokenPayload.model_validate(claims)
        except ValidationError as e:
            raise MalformedTokenError("Token claims are incomplete") from e

    def sign(self, signing_input: str) -> str:
        """Return the base64url HMAC signature of ``header.payload``."""
        signature = self._hmac.sign(signing_input.encode("utf-8"), self._key)
        return base64url_encode(signature).decode("ascii")

    def __repr__(self) -> str:
        return f"TokenCodec(algorithm={ALGORITHM!r}, default_ttl={self.default_ttl!r})"
