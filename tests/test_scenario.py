"""End-to-end walk through a project's life using the service layer."""

from __future__ import annotations

import pytest
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.errors import BadRequestError, ForbiddenError
from taskflow.models import GlobalRole, ProjectRole, Task, TaskStatus
from taskflow.services import ProjectService, TaskService

pytestmark = pytest.mark.asyncio


async def test_launch_project_walkthrough(session: AsyncSession, make_user, requester_for) -> None:
    admin = requester_for(await make_user("Ada", GlobalRole.ADMIN))
    assignee = requester_for(await make_user("Uma"))
    bystander = requester_for(await make_user("Vic"))
    projects = ProjectService(session)
    tasks = TaskService(session)

    project = (await projects.create_project(admin, name="Launch", description="v1")).project

    with pytest.raises(ForbiddenError):
        await projects.create_project(assignee, name="Side project")

    details = await projects.add_member(admin, project.id, assignee.user_id, ProjectRole.MEMBER)
    assert len(details.members) == 2
    await projects.add_member(admin, project.id, bystander.user_id, ProjectRole.MEMBER)

    task = await tasks.create_task(admin, project.id, title="Write release notes", assigned_to=assignee.user_id)
    assert task.status is TaskStatus.TODO

    with pytest.raises(BadRequestError, match="Invalid status transition"):
        await tasks.update_task(assignee, task.id, {"status": "DONE"})

    task = await tasks.update_task(assignee, task.id, {"status": "IN_PROGRESS"})
    assert task.status is TaskStatus.IN_PROGRESS
    assert task.completed_at is None

    task = await tasks.update_task(assignee, task.id, {"status": "DONE"})
    assert task.status is TaskStatus.DONE
    assert task.completed_at is not None

    with pytest.raises(ForbiddenError):
        await tasks.update_task(bystander, task.id, {"status": "TODO"})
    with pytest.raises(ForbiddenError):
        await tasks.delete_task(bystander, task.id)

    await projects.delete_project(admin, project.id)
    remaining = (await session.execute(select(Task).where(Task.project_id == project.id))).scalars().all()
    assert remaining == []
