"""Routes for projects, their rosters and project-scoped task queries."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from ...deps import ProjectServiceDependency, RequesterDependency, TaskServiceDependency
from ...models import ProjectStatus, TaskPriority, TaskStatus
from ...schemas import (
    MemberAdd,
    MemberRead,
    MemberRoleUpdate,
    ProjectCreate,
    ProjectDetailRead,
    ProjectListResponse,
    ProjectRead,
    ProjectUpdate,
    TaskCreate,
    TaskListResponse,
    TaskRead,
    TaskStatistics,
)
from ...schemas.task import SortOrder, TaskSortField
from ...services import ProjectDetails

router = APIRouter(prefix="/projects", tags=["projects"])

PageQuery = Annotated[int, Query(ge=1, description="1-based page number.")]
LimitQuery = Annotated[int, Query(ge=1, le=100, description="Maximum number of items per page.")]


def _project_detail(details: ProjectDetails) -> ProjectDetailRead:
    return ProjectDetailRead(
        **ProjectRead.model_validate(details.project).model_dump(),
        members=[MemberRead.model_validate(member) for member in details.members],
    )


@router.post(
    "",
    response_model=ProjectDetailRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
)
async def create_project(
    payload: ProjectCreate,
    requester: RequesterDependency,
    service: ProjectServiceDependency,
) -> ProjectDetailRead:
    details = await service.create_project(requester, name=payload.name, description=payload.description)
    return _project_detail(details)


@router.get("", response_model=ProjectListResponse, summary="List visible projects")
async def list_projects(
    requester: RequesterDependency,
    service: ProjectServiceDependency,
    page: PageQuery = 1,
    limit: LimitQuery = 10,
    project_status: Annotated[ProjectStatus, Query(alias="status")] = ProjectStatus.ACTIVE,
) -> ProjectListResponse:
    result = await service.list_projects(requester, page=page, limit=limit, status=project_status)
    return ProjectListResponse(
        data=[ProjectRead.model_validate(project) for project in result.data],
        pagination=result.pagination,
    )


@router.get("/{project_id}", response_model=ProjectDetailRead, summary="Retrieve a project")
async def get_project(
    project_id: int,
    requester: RequesterDependency,
    service: ProjectServiceDependency,
) -> ProjectDetailRead:
    return _project_detail(await service.get_project(requester, project_id))


@router.patch("/{project_id}", response_model=ProjectRead, summary="Update a project")
async def update_project(
    project_id: int,
    payload: ProjectUpdate,
    requester: RequesterDependency,
    service: ProjectServiceDependency,
) -> ProjectRead:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    project = await service.update_project(requester, project_id, changes)
    return ProjectRead.model_validate(project)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a project with its tasks",
)
async def delete_project(
    project_id: int,
    requester: RequesterDependency,
    service: ProjectServiceDependency,
) -> Response:
    await service.delete_project(requester, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/members", response_model=list[MemberRead], summary="List project members")
async def list_members(
    project_id: int,
    requester: RequesterDependency,
    service: ProjectServiceDependency,
) -> list[MemberRead]:
    members = await service.get_members(requester, project_id)
    return [MemberRead.model_validate(member) for member in members]


@router.post(
    "/{project_id}/members",
    response_model=ProjectDetailRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a member to the project",
)
async def add_member(
    project_id: int,
    payload: MemberAdd,
    requester: RequesterDependency,
    service: ProjectServiceDependency,
) -> ProjectDetailRead:
    details = await service.add_member(requester, project_id, payload.user_id, payload.role)
    return _project_detail(details)


@router.patch(
    "/{project_id}/members/{member_id}",
    response_model=ProjectDetailRead,
    summary="Change a member's project role",
)
async def update_member_role(
    project_id: int,
    member_id: int,
    payload: MemberRoleUpdate,
    requester: RequesterDependency,
    service: ProjectServiceDependency,
) -> ProjectDetailRead:
    details = await service.update_member_role(requester, project_id, member_id, payload.role)
    return _project_detail(details)


@router.delete(
    "/{project_id}/members/{member_id}",
    response_model=ProjectDetailRead,
    summary="Remove a member from the project",
)
async def remove_member(
    project_id: int,
    member_id: int,
    requester: RequesterDependency,
    service: ProjectServiceDependency,
) -> ProjectDetailRead:
    return _project_detail(await service.remove_member(requester, project_id, member_id))


@router.post(
    "/{project_id}/tasks",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task in the project",
)
async def create_task(
    project_id: int,
    payload: TaskCreate,
    requester: RequesterDependency,
    service: TaskServiceDependency,
) -> TaskRead:
    task = await service.create_task(
        requester,
        project_id,
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        assigned_to=payload.assigned_to,
        due_date=payload.due_date,
    )
    return TaskRead.model_validate(task)


@router.get("/{project_id}/tasks", response_model=TaskListResponse, summary="List the project's tasks")
async def list_tasks(
    project_id: int,
    requester: RequesterDependency,
    service: TaskServiceDependency,
    task_status: Annotated[TaskStatus | None, Query(alias="status")] = None,
    priority: TaskPriority | None = None,
    assigned_to: Annotated[int | None, Query(ge=1)] = None,
    page: PageQuery = 1,
    limit: LimitQuery = 10,
    sort_by: TaskSortField = "created_at",
    order: SortOrder = "desc",
) -> TaskListResponse:
    return await service.list_tasks(
        requester,
        project_id,
        status=task_status,
        priority=priority,
        assigned_to=assigned_to,
        page=page,
        limit=limit,
        sort_by=sort_by,
        order=order,
    )


@router.get("/{project_id}/tasks/stats", response_model=TaskStatistics, summary="Task statistics")
async def get_statistics(
    project_id: int,
    requester: RequesterDependency,
    service: TaskServiceDependency,
) -> TaskStatistics:
    return await service.get_statistics(requester, project_id)
