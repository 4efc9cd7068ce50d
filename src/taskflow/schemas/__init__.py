"""Pydantic schemas for public interfaces."""

from __future__ import annotations

from .pagination import Pagination
from .project import (
    MemberAdd,
    MemberRead,
    MemberRoleUpdate,
    ProjectCreate,
    ProjectDetailRead,
    ProjectListResponse,
    ProjectRead,
    ProjectUpdate,
)
from .system import ErrorResponse, HealthCheckResponse
from .task import (
    CommentCreate,
    CommentRead,
    TaskAssign,
    TaskCreate,
    TaskDetailRead,
    TaskListResponse,
    TaskRead,
    TaskStatistics,
    TaskStatusChange,
    TaskUpdate,
)

__all__ = [
    "CommentCreate",
    "CommentRead",
    "ErrorResponse",
    "HealthCheckResponse",
    "MemberAdd",
    "MemberRead",
    "MemberRoleUpdate",
    "Pagination",
    "ProjectCreate",
    "ProjectDetailRead",
    "ProjectListResponse",
    "ProjectRead",
    "ProjectUpdate",
    "TaskAssign",
    "TaskCreate",
    "TaskDetailRead",
    "TaskListResponse",
    "TaskRead",
    "TaskStatistics",
    "TaskStatusChange",
    "TaskUpdate",
]
