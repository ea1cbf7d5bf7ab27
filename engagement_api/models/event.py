"""Engagement event data models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Engagement event types."""

    PAGE_VIEW = "page_view"
    SCROLL_50 = "scroll_50"
    SCROLL_90 = "scroll_90"
    LINK_CLICK = "link_click"
    EMAIL_OPEN = "email_open"
    SESSION_START = "session_start"
    SESSION_END = "session_end"


# Event types that count an article as read
READ_EVENT_TYPES: tuple[EventType, ...] = (
    EventType.PAGE_VIEW,
    EventType.SCROLL_50,
    EventType.SCROLL_90,
    EventType.SESSION_END,
)


class EngagementEventCreate(BaseModel):
    """An engagement event as submitted, before it is persisted."""

    model_config = {"use_enum_values": True}

    event_type: EventType
    user_id: str | None = Field(default=None, max_length=255)
    newsletter_id: str | None = Field(default=None, max_length=255)
    article_id: str | None = Field(default=None, max_length=255)
    session_id: str | None = Field(default=None, max_length=120)
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form details (user agent, target URL, elapsed seconds)",
    )


class EngagementEvent(EngagementEventCreate):
    """A persisted, immutable engagement event."""

    id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class RecordResult(BaseModel):
    """Outcome of recording an event; ``accepted`` is False for duplicates."""

    accepted: bool
    id: str | None = None
