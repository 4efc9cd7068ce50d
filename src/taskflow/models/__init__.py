"""Domain models exposed for the Taskflow service."""

from __future__ import annotations

from .common import TimestampMixin, utcnow
from .project import Project, ProjectMember, ProjectRole, ProjectStatus
from .task import Task, TaskComment, TaskPriority, TaskStatus
from .user import GlobalRole, User, UserBase

__all__ = [
    "GlobalRole",
    "Project",
    "ProjectMember",
    "ProjectRole",
    "ProjectStatus",
    "Task",
    "TaskComment",
    "TaskPriority",
    "TaskStatus",
    "TimestampMixin",
    "User",
    "UserBase",
    "utcnow",
]
