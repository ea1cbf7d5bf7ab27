"""Client session tracking models."""

from enum import Enum

from pydantic import BaseModel, Field


class SessionState(str, Enum):
    """Session tracker lifecycle states."""

    IDLE = "idle"
    ACTIVE = "active"
    TERMINATED = "terminated"


class TrackingHookInput(BaseModel):
    """Inputs of the page tracking hook.

    Everything except ``enabled`` is carried verbatim into event foreign keys
    and metadata.
    """

    model_config = {"populate_by_name": True, "frozen": True}

    article_id: str | None = Field(default=None, alias="articleId")
    week_number: str | None = Field(
        default=None, alias="weekNumber", description="Newsletter week, used as newsletter id"
    )
    class_id: str | None = Field(default=None, alias="classId")
    enabled: bool = True
