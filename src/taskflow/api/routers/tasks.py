"""Routes operating on a single task."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from ...deps import RequesterDependency, TaskServiceDependency
from ...schemas import CommentCreate, CommentRead, TaskAssign, TaskDetailRead, TaskRead, TaskStatusChange, TaskUpdate
from ...services import TaskDetails

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _task_detail(details: TaskDetails) -> TaskDetailRead:
    return TaskDetailRead(
        **TaskRead.model_validate(details.task).model_dump(),
        comments=[CommentRead.model_validate(comment) for comment in details.comments],
    )


@router.get("/{task_id}", response_model=TaskDetailRead, summary="Retrieve a task with its comments")
async def get_task(task_id: int, requester: RequesterDependency, service: TaskServiceDependency) -> TaskDetailRead:
    return _task_detail(await service.get_task(requester, task_id))


@router.patch("/{task_id}", response_model=TaskRead, summary="Update a task")
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    requester: RequesterDependency,
    service: TaskServiceDependency,
) -> TaskRead:
    task = await service.update_task(requester, task_id, payload.model_dump(exclude_unset=True))
    return TaskRead.model_validate(task)


@router.patch("/{task_id}/status", response_model=TaskRead, summary="Move a task along the workflow")
async def change_status(
    task_id: int,
    payload: TaskStatusChange,
    requester: RequesterDependency,
    service: TaskServiceDependency,
) -> TaskRead:
    return TaskRead.model_validate(await service.change_status(requester, task_id, payload.status))


@router.put("/{task_id}/assign", response_model=TaskRead, summary="Assign a task to a project member")
async def assign_task(
    task_id: int,
    payload: TaskAssign,
    requester: RequesterDependency,
    service: TaskServiceDependency,
) -> TaskRead:
    return TaskRead.model_validate(await service.assign_task(requester, task_id, payload.assigned_to))


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a task",
)
async def delete_task(task_id: int, requester: RequesterDependency, service: TaskServiceDependency) -> Response:
    await service.delete_task(requester, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{task_id}/comments",
    response_model=TaskDetailRead,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a task",
)
async def add_comment(
    task_id: int,
    payload: CommentCreate,
    requester: RequesterDependency,
    service: TaskServiceDependency,
) -> TaskDetailRead:
    return _task_detail(await service.add_comment(requester, task_id, payload.text))
