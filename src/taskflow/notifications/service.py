"""Read and write access to the per-user notification inbox."""

from __future__ import annotations

from beanie import PydanticObjectId
from bson.errors import InvalidId

from ..errors import NotFoundError
from .models import Notification, NotificationKind


class NotificationInbox:
    """Read and write access to users' delivered notifications."""

    def __init__(self, *, default_page_size: int = 25) -> None:
        self._default_page_size = max(default_page_size, 1)

    async def record(
        self,
        *,
        kind: NotificationKind,
        user_id: int,
        message: str,
        task_id: int | None = None,
        project_id: int | None = None,
        request_id: str | None = None,
    ) -> Notification:
        notification = Notification(
            kind=kind,
            user_id=user_id,
            message=message,
            task_id=task_id,
            project_id=project_id,
            request_id=request_id,
        )
        await notification.insert()
        return notification

    async def list_for_user(
        self,
        user_id: int,
        *,
        unread_only: bool = False,
        limit: int | None = None,
    ) -> list[Notification]:
        """Return the user's notifications, newest first."""

        page_size = self._default_page_size if limit is None else max(int(limit), 1)
        query = Notification.find(Notification.user_id == user_id)
        if unread_only:
            query = query.find(Notification.read == False)  # noqa: E712
        return await query.sort("-created_at").limit(page_size).to_list()

    async def mark_read(self, notification_id: str, *, user_id: int) -> Notification:
        """Mark one of ``user_id``'s notifications as read.

        Other users' notifications are reported as missing.
        """

        try:
            object_id = PydanticObjectId(notification_id)
        except (InvalidId, TypeError) as exc:
            raise NotFoundError.for_resource("Notification") from exc
        notification = await Notification.get(object_id)
        if notification is None or notification.user_id != user_id:
            raise NotFoundError.for_resource("Notification")
        if not notification.read:
            notification.read = True
            await notification.save()
        return notification


__all__ = ["NotificationInbox"]
