"""Task domain models built with SQLModel."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin, utcnow


class TaskStatus(str, Enum):
    """Workflow states; transitions are governed by ``taskflow.workflow``."""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Task(TimestampMixin, table=True):
    """Persistent task model; always belongs to exactly one project."""

    __tablename__ = "tasks"
    __table_args__ = (
        sa.CheckConstraint("length(title) >= 3", name="ck_tasks_title_length"),
        sa.Index("ix_tasks_project_status_priority", "project_id", "status", "priority"),
        sa.Index("ix_tasks_assigned_to_status", "assigned_to", "status"),
    )

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(
        max_length=200,
        sa_column=sa.Column(sa.String(length=200), nullable=False),
    )
    description: str = Field(
        default="",
        max_length=1000,
        sa_column=sa.Column(sa.String(length=1000), nullable=False, server_default=""),
    )
    status: TaskStatus = Field(
        default=TaskStatus.TODO,
        sa_column=sa.Column(
            sa.Enum(TaskStatus, name="task_status", native_enum=False, validate_strings=True),
            nullable=False,
            server_default=TaskStatus.TODO.value,
        ),
    )
    priority: TaskPriority = Field(
        default=TaskPriority.MEDIUM,
        sa_column=sa.Column(
            sa.Enum(TaskPriority, name="task_priority", native_enum=False, validate_strings=True),
            nullable=False,
            server_default=TaskPriority.MEDIUM.value,
        ),
    )
    project_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    assigned_to: int | None = Field(
        default=None,
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    created_by: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
    )
    due_date: datetime | None = Field(
        default=None,
        sa_column=sa.Column(sa.DateTime(timezone=True), nullable=True),
    )
    completed_at: datetime | None = Field(
        default=None,
        sa_column=sa.Column(sa.DateTime(timezone=True), nullable=True),
    )


class TaskComment(SQLModel, table=True):
    """Ordered discussion entry attached to a task."""

    __tablename__ = "task_comments"
    __table_args__ = (sa.Index("ix_task_comments_task_id", "task_id"),)

    id: int | None = Field(default=None, primary_key=True)
    task_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    author_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    text: str = Field(sa_column=sa.Column(sa.Text(), nullable=False))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=sa.Column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


__all__ = ["Task", "TaskComment", "TaskPriority", "TaskStatus"]
