"""Request models for API endpoints."""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .snapshot import SnapshotScope


class TokenIssueRequest(BaseModel):
    """Request to issue a tracking token for one recipient."""

    subject: str = Field(..., min_length=1, description="User id of the recipient")
    context: dict[str, Any] = Field(
        default_factory=dict,
        description="Tracking context carried in the token",
        examples=[{"newsletter_id": "2025-W01", "class_ids": ["G1"]}],
    )
    ttl_seconds: int | None = Field(
        default=None, description="Token lifetime; defaults to the configured TTL"
    )
    links: list[str] = Field(
        default_factory=list,
        description="Destination URLs to wrap in click-tracking links",
    )


class TokenRequest(BaseModel):
    """Request carrying a single tracking token."""

    token: str = Field(..., min_length=1)


class SubjectRevokeRequest(BaseModel):
    """Request to revoke every known token of a subject."""

    subject: str = Field(..., min_length=1)


class LinkRegisterRequest(BaseModel):
    """Request to register a destination URL for click tracking."""

    url: str = Field(..., min_length=1, max_length=2048)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Only http(s) destinations can be tracked."""
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("url must be an absolute http(s) URL")
        return v


class SnapshotGenerateRequest(BaseModel):
    """Request to (re)generate daily snapshots."""

    start_date: date
    end_date: date | None = None
    scope: SnapshotScope = Field(default_factory=SnapshotScope)
    sent_count: int | None = Field(
        default=None, ge=0, description="Recipients the newsletter was sent to"
    )
