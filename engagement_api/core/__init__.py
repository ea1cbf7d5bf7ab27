"""Core business logic for token verification and engagement tracking."""

from .aggregator import SnapshotAggregator
from .errors import (
    MalformedTokenError,
    SignatureInvalidError,
    StorageError,
    TokenError,
    TokenExpiredError,
    TokenRevokedError,
    TrackingError,
)
from .event_recorder import EventRecorder
from .links import LinkResolver
from .revocation import RevocationService
from .session_tracker import (
    AsyncEventSink,
    EventSink,
    HttpEventSink,
    RecorderEventSink,
    SessionContext,
    SessionTracker,
    scroll_depth_percent,
)
from .token_codec import TokenCodec, token_hash
from .token_verifier import TokenVerifier

__all__ = [
    # Tokens
    "TokenCodec",
    "TokenVerifier",
    "RevocationService",
    "token_hash",
    # Events
    "EventRecorder",
    "SnapshotAggregator",
    "LinkResolver",
    # Client session tracking
    "SessionTracker",
    "SessionContext",
    "EventSink",
    "AsyncEventSink",
    "RecorderEventSink",
    "HttpEventSink",
    "scroll_depth_percent",
    # Errors
    "TrackingError",
    "TokenError",
    "MalformedTokenError",
    "SignatureInvalidError",
    "TokenExpiredError",
    "TokenRevokedError",
    "StorageError",
]
