"""Tracking token and revocation data models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class VerificationReason(str, Enum):
    """Why a tracking token was rejected."""

    MALFORMED = "malformed"
    SIGNATURE_INVALID = "signature_invalid"
    EXPIRED = "expired"
    REVOKED = "revoked"
    STORAGE_UNAVAILABLE = "storage_unavailable"


class TokenPayload(BaseModel):
    """Decoded claims of a tracking token.

    The wire names follow JWT conventions (``sub``, ``iat``, ``exp``, ``jti``)
    with the tracking context under ``ctx``.
    """

    subject: str = Field(..., alias="sub", description="Tracked individual (user id)")
    context: dict[str, Any] = Field(
        default_factory=dict, alias="ctx", description="Opaque tracking context"
    )
    issued_at: int = Field(..., alias="iat", description="Issued-at, Unix seconds")
    expires_at: int = Field(..., alias="exp", description="Expiry, Unix seconds")
    token_id: str | None = Field(default=None, alias="jti", description="Random token id")

    model_config = {"populate_by_name": True}

    def to_claims(self) -> dict[str, Any]:
        """Return the claims dict as it is signed."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @property
    def expires_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=UTC)


class VerificationResult(BaseModel):
    """Outcome of verifying a tracking token; never carries token material."""

    valid: bool
    subject: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)
    reason: VerificationReason | None = None
    expires_at: int | None = None

    @classmethod
    def ok(cls, payload: TokenPayload) -> "VerificationResult":
        return cls(
            valid=True,
            subject=payload.subject,
            context=payload.context,
            expires_at=payload.expires_at,
        )

    @classmethod
    def rejected(cls, reason: VerificationReason) -> "VerificationResult":
        return cls(valid=False, reason=reason)


class RevocationRecord(BaseModel):
    """Persisted revocation row, keyed by the hash of the token string."""

    token_hash: str
    user_id: str
    is_revoked: bool = False
    expires_at: datetime
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class RevocationResult(BaseModel):
    """Result of a bulk revocation for one subject."""

    revoked_count: int = 0
    error: str | None = None
