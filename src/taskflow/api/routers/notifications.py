"""Routes exposing the requester's notification inbox."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from ...deps import NotificationInboxDependency, RequesterDependency
from ...notifications import Notification
from ...schemas.notification import NotificationRead

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _to_read(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=str(notification.id),
        kind=notification.kind,
        user_id=notification.user_id,
        message=notification.message,
        task_id=notification.task_id,
        project_id=notification.project_id,
        read=notification.read,
        created_at=notification.created_at,
    )


@router.get("", response_model=list[NotificationRead], summary="List my notifications")
async def list_notifications(
    requester: RequesterDependency,
    inbox: NotificationInboxDependency,
    unread: bool = False,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> list[NotificationRead]:
    notifications = await inbox.list_for_user(requester.user_id, unread_only=unread, limit=limit)
    return [_to_read(notification) for notification in notifications]


@router.post("/{notification_id}/read", response_model=NotificationRead, summary="Mark a notification read")
async def mark_notification_read(
    notification_id: str,
    requester: RequesterDependency,
    inbox: NotificationInboxDependency,
) -> NotificationRead:
    return _to_read(await inbox.mark_read(notification_id, user_id=requester.user_id))
