"""Job implementations that deliver notifications to the inbox."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..core.context import request_id_scope
from ..notifications import NotificationInbox, NotificationKind, init_notification_store

logger = logging.getLogger("taskflow.jobs.notifications")


async def _deliver(
    kind: NotificationKind,
    user_id: int,
    message: str,
    task_id: int | None,
    project_id: int | None,
    request_id: str | None,
) -> dict[str, Any]:
    await init_notification_store()
    notification = await NotificationInbox().record(
        kind=kind,
        user_id=user_id,
        message=message,
        task_id=task_id,
        project_id=project_id,
        request_id=request_id,
    )
    return {"id": str(notification.id), "kind": kind.value, "user_id": user_id}


def deliver_notification_job(
    kind: str,
    user_id: int,
    message: str,
    *,
    task_id: int | None = None,
    project_id: int | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Store one notification in the recipient's inbox."""

    if user_id <= 0:
        raise ValueError("user_id must be a positive integer")

    with request_id_scope(request_id):
        payload = asyncio.run(
            _deliver(NotificationKind(kind), user_id, message, task_id, project_id, request_id)
        )
        logger.info(
            "Delivered %s notification to user %s",
            kind,
            user_id,
            extra={"user_id": user_id, "task_id": task_id, "project_id": project_id},
        )
        return payload


__all__ = ["deliver_notification_job"]
