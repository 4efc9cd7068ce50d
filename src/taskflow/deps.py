"""Reusable FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlmodel.ext.asyncio.session import AsyncSession

from .core.cache import ProjectCache
from .core.config import Settings, get_settings
from .core.jobs import Notifier
from .core.security import decode_token
from .db.session import get_session
from .models import GlobalRole
from .notifications import NotificationInbox
from .policy import Requester
from .services import ProjectService, TaskService

SettingsDependency = Annotated[Settings, Depends(get_settings)]

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields a database session."""

    async for session in get_session():
        yield session


DatabaseSessionDependency = Annotated[AsyncSession, Depends(get_db_session)]


def _unauthorized(detail: str = "Could not validate credentials.") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_requester(
    settings: SettingsDependency,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> Requester:
    """Turn the bearer token into the identity assertion the services trust.

    ``sub`` carries the user id and ``roles[0]`` the global role.
    """

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Not authenticated.")
    try:
        payload = decode_token(token=credentials.credentials, settings=settings)
    except JWTError as exc:
        raise _unauthorized() from exc

    roles = payload.get("roles") or []
    try:
        user_id = int(payload["sub"])
        role = GlobalRole(roles[0])
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise _unauthorized() from exc
    return Requester(user_id=user_id, role=role)


RequesterDependency = Annotated[Requester, Depends(get_requester)]


def get_project_cache(request: Request) -> ProjectCache:
    cache = getattr(request.app.state, "cache", None)
    return cache if cache is not None else ProjectCache(None)


def get_notifier(request: Request) -> Notifier:
    notifier = getattr(request.app.state, "notifier", None)
    return notifier if notifier is not None else Notifier(None)


def get_project_service(
    session: DatabaseSessionDependency,
    cache: ProjectCache = Depends(get_project_cache),
) -> ProjectService:
    return ProjectService(session, cache=cache)


def get_task_service(
    session: DatabaseSessionDependency,
    cache: ProjectCache = Depends(get_project_cache),
    notifier: Notifier = Depends(get_notifier),
) -> TaskService:
    return TaskService(session, cache=cache, notifier=notifier)


def get_notification_inbox(settings: SettingsDependency) -> NotificationInbox:
    return NotificationInbox(default_page_size=settings.default_page_size)


ProjectServiceDependency = Annotated[ProjectService, Depends(get_project_service)]
TaskServiceDependency = Annotated[TaskService, Depends(get_task_service)]
NotificationInboxDependency = Annotated[NotificationInbox, Depends(get_notification_inbox)]


__all__ = [
    "DatabaseSessionDependency",
    "NotificationInboxDependency",
    "ProjectServiceDependency",
    "RequesterDependency",
    "SettingsDependency",
    "TaskServiceDependency",
    "get_db_session",
    "get_notification_inbox",
    "get_project_service",
    "get_requester",
    "get_task_service",
]
