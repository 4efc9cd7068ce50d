"""Repository for projects and their rosters."""

from __future__ import annotations

from sqlalchemy import delete, func, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Project, ProjectMember, ProjectStatus, Task, TaskComment, User
from .base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """Persistence helpers for ``Project`` and ``ProjectMember`` rows."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Project)

    async def list_paginated(
        self,
        *,
        visible_to: int | None = None,
        status: ProjectStatus | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Project], int]:
        """Return projects newest first along with the total count.

        ``visible_to`` restricts the result to projects the user owns or is
        on the roster of; ``None`` means no restriction.
        """
        conditions = []
        if visible_to is not None:
            memberships = select(ProjectMember.project_id).where(ProjectMember.user_id == visible_to)
            conditions.append(or_(Project.owner_id == visible_to, Project.id.in_(memberships)))
        if status is not None:
            conditions.append(Project.status == status)

        query = select(Project).where(*conditions)
        query = query.order_by(Project.created_at.desc(), Project.id.desc()).limit(limit).offset(offset)
        count_query = select(func.count()).select_from(Project).where(*conditions)

        result = await self.session.execute(query)
        projects = list(result.scalars().all())
        total_result = await self.session.execute(count_query)
        return projects, int(total_result.scalar_one())

    async def list_members(self, project_id: int) -> list[ProjectMember]:
        """Return the roster in insertion order."""
        result = await self.session.execute(
            select(ProjectMember).where(ProjectMember.project_id == project_id).order_by(ProjectMember.id)
        )
        return list(result.scalars().all())

    async def list_member_profiles(self, project_id: int) -> list[tuple[ProjectMember, User]]:
        result = await self.session.execute(
            select(ProjectMember, User)
            .join(User, User.id == ProjectMember.user_id)
            .where(ProjectMember.project_id == project_id)
            .order_by(ProjectMember.id)
        )
        return [(member, user) for member, user in result.all()]

    async def add_member(self, member: ProjectMember) -> ProjectMember:
        self.session.add(member)
        await self.session.flush()
        return member

    async def remove_member(self, member: ProjectMember) -> None:
        await self.session.delete(member)
        await self.session.flush()

    async def delete_cascade(self, project: Project) -> None:
        """Delete comments, tasks, roster and the project itself.

        Does not commit; the caller owns the transaction.
        """
        task_ids = select(Task.id).where(Task.project_id == project.id)
        await self.session.execute(delete(TaskComment).where(TaskComment.task_id.in_(task_ids)))
        await self.session.execute(delete(Task).where(Task.project_id == project.id))
        await self.session.execute(delete(ProjectMember).where(ProjectMember.project_id == project.id))
        await self.session.delete(project)
        await self.session.flush()


__all__ = ["ProjectRepository"]
