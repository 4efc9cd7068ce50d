"""Task-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models import TaskPriority, TaskStatus
from .pagination import Pagination

TaskSortField = Literal["created_at", "due_date", "priority"]
SortOrder = Literal["asc", "desc"]

TASK_READ_EXAMPLE = {
    "id": 12,
    "title": "Draft landing page copy",
    "description": "First pass for review.",
    "status": TaskStatus.IN_PROGRESS.value,
    "priority": TaskPriority.HIGH.value,
    "project_id": 7,
    "assigned_to": 3,
    "created_by": 1,
    "due_date": "2024-04-01T17:00:00Z",
    "completed_at": None,
    "created_at": "2024-03-01T09:00:00Z",
    "updated_at": "2024-03-02T10:15:00Z",
}

TASK_STATISTICS_EXAMPLE = {
    "total": 3,
    "by_status": {
        TaskStatus.TODO.value: 1,
        TaskStatus.IN_PROGRESS.value: 1,
        TaskStatus.DONE.value: 1,
    },
    "by_priority": {
        TaskPriority.LOW.value: 0,
        TaskPriority.MEDIUM.value: 2,
        TaskPriority.HIGH.value: 1,
    },
    "overdue": 1,
}


class TaskCreate(BaseModel):
    """Payload for creating a new task inside a project."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Draft landing page copy",
                "priority": TaskPriority.HIGH.value,
                "assigned_to": 3,
            }
        }
    )

    title: str = Field(min_length=3, max_length=200)
    description: str = Field(default="", max_length=1000)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    assigned_to: int | None = Field(default=None, ge=1)
    due_date: datetime | None = Field(default=None)


class TaskUpdate(BaseModel):
    """Payload for partially updating an existing task."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    status: TaskStatus | None = Field(default=None)
    priority: TaskPriority | None = Field(default=None)
    assigned_to: int | None = Field(default=None, ge=1)
    due_date: datetime | None = Field(default=None)

    @model_validator(mode="after")
    def _ensure_payload_not_empty(self) -> "TaskUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update.")
        return self


class TaskStatusChange(BaseModel):
    status: TaskStatus


class TaskAssign(BaseModel):
    assigned_to: int = Field(ge=1)


class CommentCreate(BaseModel):
    text: str = Field(min_length=1, max_length=2000)


class CommentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    author_id: int
    text: str
    created_at: datetime


class TaskRead(BaseModel):
    """Public representation of a task."""

    model_config = ConfigDict(from_attributes=True, json_schema_extra={"example": TASK_READ_EXAMPLE})

    id: int
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    project_id: int
    assigned_to: int | None = None
    created_by: int
    due_date: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class TaskDetailRead(TaskRead):
    comments: list[CommentRead] = Field(default_factory=list)


class TaskListResponse(BaseModel):
    """Paginated collection of tasks."""

    data: list[TaskRead]
    pagination: Pagination


class TaskStatistics(BaseModel):
    """Aggregated statistics describing task distribution in a project."""

    model_config = ConfigDict(json_schema_extra={"example": TASK_STATISTICS_EXAMPLE})

    total: int = Field(ge=0)
    by_status: dict[str, int] = Field(default_factory=dict)
    by_priority: dict[str, int] = Field(default_factory=dict)
    overdue: int = Field(ge=0)

    @model_validator(mode="after")
    def _validate_counts(self) -> "TaskStatistics":
        counts = [*self.by_status.values(), *self.by_priority.values()]
        if any(count < 0 for count in counts):
            raise ValueError("Counts cannot be negative.")
        return self


__all__ = [
    "CommentCreate",
    "CommentRead",
    "SortOrder",
    "TaskAssign",
    "TaskCreate",
    "TaskDetailRead",
    "TaskListResponse",
    "TaskRead",
    "TaskSortField",
    "TaskStatistics",
    "TaskStatusChange",
    "TaskUpdate",
]
