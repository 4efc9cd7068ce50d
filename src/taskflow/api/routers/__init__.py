"""Router registrations for the Taskflow API."""

from __future__ import annotations

from fastapi import APIRouter

from .health import router as health_router
from .notifications import router as notifications_router
from .projects import router as projects_router
from .tasks import router as tasks_router

api_router = APIRouter()
api_router.include_router(projects_router)
api_router.include_router(tasks_router)
api_router.include_router(notifications_router)

__all__ = ["api_router", "health_router", "notifications_router", "projects_router", "tasks_router"]
