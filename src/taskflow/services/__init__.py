"""Service layer exposing project and task business logic."""

from __future__ import annotations

from .projects import MemberSummary, ProjectDetails, ProjectPage, ProjectService
from .tasks import TaskDetails, TaskService

__all__ = [
    "MemberSummary",
    "ProjectDetails",
    "ProjectPage",
    "ProjectService",
    "TaskDetails",
    "TaskService",
]
