"""Schemas for the notification inbox API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ..notifications.models import NotificationKind


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: NotificationKind
    user_id: int
    message: str
    task_id: int | None = None
    project_id: int | None = None
    read: bool
    created_at: datetime


__all__ = ["NotificationRead"]
