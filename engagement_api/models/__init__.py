"""Data models for the engagement tracking service."""

from .event import (
    READ_EVENT_TYPES,
    EngagementEvent,
    EngagementEventCreate,
    EventType,
    RecordResult,
)
from .requests import (
    LinkRegisterRequest,
    SnapshotGenerateRequest,
    SubjectRevokeRequest,
    TokenIssueRequest,
    TokenRequest,
)
from .responses import (
    HealthResponse,
    LinkResponse,
    PruneResponse,
    ReadArticlesResponse,
    RevokeResponse,
    SnapshotListResponse,
    TokenIssueResponse,
    TrackedLink,
    VersionResponse,
)
from .session import SessionState, TrackingHookInput
from .snapshot import AnalyticsSnapshot, MetricName, SnapshotScope
from .tracking import (
    RevocationRecord,
    RevocationResult,
    TokenPayload,
    VerificationReason,
    VerificationResult,
)

__all__ = [
    # Event models
    "EventType",
    "READ_EVENT_TYPES",
    "EngagementEvent",
    "EngagementEventCreate",
    "RecordResult",
    # Token models
    "TokenPayload",
    "VerificationReason",
    "VerificationResult",
    "RevocationRecord",
    "RevocationResult",
    # Session models
    "SessionState",
    "TrackingHookInput",
    # Snapshot models
    "AnalyticsSnapshot",
    "MetricName",
    "SnapshotScope",
    # Request models
    "TokenIssueRequest",
    "TokenRequest",
    "SubjectRevokeRequest",
    "LinkRegisterRequest",
    "SnapshotGenerateRequest",
    # Response models
    "TokenIssueResponse",
    "TrackedLink",
    "RevokeResponse",
    "PruneResponse",
    "LinkResponse",
    "ReadArticlesResponse",
    "SnapshotListResponse",
    "HealthResponse",
    "VersionResponse",
]
