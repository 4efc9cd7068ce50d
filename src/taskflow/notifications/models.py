from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from beanie import Document
from pydantic import ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationKind(str, Enum):
    """Events that produce a message in a user's inbox."""

    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_STATUS_CHANGED = "TASK_STATUS_CHANGED"


class Notification(Document):
    """Beanie document holding one delivered notification."""

    model_config = ConfigDict(str_strip_whitespace=True)

    kind: NotificationKind = Field(description="Event that triggered the notification.")
    user_id: int = Field(description="Recipient user id.")
    message: str = Field(max_length=500, description="Human readable text.")
    task_id: int | None = Field(default=None)
    project_id: int | None = Field(default=None)
    read: bool = Field(default=False)
    request_id: str | None = Field(default=None, description="Correlation id of the originating request.")
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("message", mode="before")
    @classmethod
    def _clean_message(cls, value: object) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("message must not be empty")
        return text[:500]

    class Settings:
        name = "notifications"


__all__ = ["Notification", "NotificationKind"]
