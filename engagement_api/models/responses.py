"""Response models for API endpoints."""

from pydantic import BaseModel, Field

from .snapshot import AnalyticsSnapshot


class TrackedLink(BaseModel):
    """Original URL and its click-tracking URL."""

    original: str
    tracking: str


class TokenIssueResponse(BaseModel):
    """Response for token issuance."""

    token: str
    expires_at: int
    pixel_url: str
    links: list[TrackedLink] = Field(default_factory=list)


class RevokeResponse(BaseModel):
    """Response for single-token revocation."""

    revoked: bool


class PruneResponse(BaseModel):
    """Response for a revocation prune sweep."""

    pruned: int


class LinkResponse(BaseModel):
    """Response for link registration."""

    link_id: str
    url: str


class ReadArticlesResponse(BaseModel):
    """Articles a user has read."""

    user_id: str
    newsletter_id: str | None = None
    article_ids: list[str]


class SnapshotListResponse(BaseModel):
    """Response for listing snapshots."""

    snapshots: list[AnalyticsSnapshot]
    total: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    uptime: str
    storage_backend: str
    database_connected: bool


class VersionResponse(BaseModel):
    """Version information response."""

    service_version: str
