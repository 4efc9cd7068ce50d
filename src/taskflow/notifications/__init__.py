"""Per-user notification inbox stored in MongoDB."""

from __future__ import annotations

from .connection import (
    close_notification_store,
    get_notification_collection,
    init_notification_store,
    set_notification_client,
)
from .models import Notification, NotificationKind
from .service import NotificationInbox

__all__ = [
    "Notification",
    "NotificationInbox",
    "NotificationKind",
    "close_notification_store",
    "get_notification_collection",
    "init_notification_store",
    "set_notification_client",
]
