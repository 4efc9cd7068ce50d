"""Repository for interacting with task persistence models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Task, TaskComment, TaskPriority, TaskStatus
from .base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Concrete repository encapsulating ``Task`` persistence operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Task)

    async def list_paginated(
        self,
        *,
        project_id: int,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        assigned_to: int | None = None,
        sort_by: str = "created_at",
        descending: bool = True,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Task], int]:
        """Return a page of a project's tasks with the total match count."""
        conditions = [Task.project_id == project_id]
        if status is not None:
            conditions.append(Task.status == status)
        if priority is not None:
            conditions.append(Task.priority == priority)
        if assigned_to is not None:
            conditions.append(Task.assigned_to == assigned_to)

        # Priority has no ordinal mapping; it sorts by creation time.
        if sort_by == "due_date":
            primary = Task.due_date.desc().nulls_last() if descending else Task.due_date.asc().nulls_last()
        else:
            primary = Task.created_at.desc() if descending else Task.created_at.asc()
        tiebreak = Task.id.desc() if descending else Task.id.asc()

        query = select(Task).where(*conditions).order_by(primary, tiebreak).limit(limit).offset(offset)
        count_query = select(func.count()).select_from(Task).where(*conditions)

        result = await self.session.execute(query)
        tasks = list(result.scalars().all())
        total_result = await self.session.execute(count_query)
        return tasks, int(total_result.scalar_one())

    async def count_by_status(self, project_id: int) -> dict[TaskStatus, int]:
        result = await self.session.execute(
            select(Task.status, func.count()).where(Task.project_id == project_id).group_by(Task.status)
        )
        return {TaskStatus(status): int(count) for status, count in result.all()}

    async def count_by_priority(self, project_id: int) -> dict[TaskPriority, int]:
        result = await self.session.execute(
            select(Task.priority, func.count()).where(Task.project_id == project_id).group_by(Task.priority)
        )
        return {TaskPriority(priority): int(count) for priority, count in result.all()}

    async def count_overdue(self, project_id: int, *, now: datetime) -> int:
        """Count open tasks whose due date lies strictly before ``now``."""
        result = await self.session.execute(
            select(func.count())
            .select_from(Task)
            .where(
                Task.project_id == project_id,
                Task.due_date.is_not(None),
                Task.due_date < now,
                Task.status != TaskStatus.DONE,
            )
        )
        return int(result.scalar_one())

    async def list_comments(self, task_id: int) -> list[TaskComment]:
        result = await self.session.execute(
            select(TaskComment).where(TaskComment.task_id == task_id).order_by(TaskComment.id)
        )
        return list(result.scalars().all())

    async def add_comment(self, comment: TaskComment) -> TaskComment:
        self.session.add(comment)
        await self.session.flush()
        return comment

    async def delete_with_comments(self, task: Task) -> None:
        await self.session.execute(delete(TaskComment).where(TaskComment.task_id == task.id))
        await self.session.delete(task)
        await self.session.flush()


__all__ = ["TaskRepository"]
