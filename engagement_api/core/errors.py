"""Error taxonomy for token verification and tracking storage."""

from ..models.tracking import VerificationReason


class TrackingError(Exception):
    """Base class for tracking pipeline errors."""

    pass


class TokenError(TrackingError):
    """A tracking token was rejected.

    Messages are safe to show to callers: they never include the secret,
    the raw token or signature bytes.
    """

    reason: VerificationReason

    def __init__(self, message: str | None = None):
        super().__init__(message or self.reason.value.replace("_", " "))


class MalformedTokenError(TokenError):
    """Token is structurally invalid (segments, encoding or claims)."""

    reason = VerificationReason.MALFORMED


class SignatureInvalidError(TokenError):
    """Signature does not match; tampered token or wrong secret."""

    reason = VerificationReason.SIGNATURE_INVALID


class TokenExpiredError(TokenError):
    """Token is past its expiry."""

    reason = VerificationReason.EXPIRED


class TokenRevokedError(TokenError):
    """Token was explicitly revoked."""

    reason = VerificationReason.REVOKED


class StorageError(TrackingError):
    """Storage backend failure. Reads are safe to retry."""

    pass
