"""Service layer encapsulating task lifecycle operations."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.cache import ProjectCache, task_list_key, task_statistics_key
from ..core.config import get_settings
from ..core.jobs import Notifier
from ..errors import BadRequestError, NotFoundError, ValidationError
from ..models import Project, ProjectMember, Task, TaskComment, TaskPriority, TaskStatus, utcnow
from ..notifications.models import NotificationKind
from ..policy import Action, Requester, ensure_allowed
from ..repositories import ProjectRepository, TaskRepository, UserRepository
from ..schemas.pagination import Pagination
from ..schemas.task import TaskListResponse, TaskRead, TaskStatistics
from ..workflow import apply_transition, ensure_transition
from .projects import validate_page

logger = logging.getLogger("taskflow.services.tasks")

TASK_SORT_FIELDS = ("created_at", "due_date", "priority")
SORT_ORDERS = ("asc", "desc")
_TASK_UPDATE_FIELDS = frozenset({"title", "description", "status", "priority", "assigned_to", "due_date"})
_due_date_adapter: TypeAdapter[datetime | None] = TypeAdapter(datetime | None)


@dataclass(slots=True)
class TaskDetails:
    task: Task
    comments: list[TaskComment] = field(default_factory=list)


class _TaskBuckets(BaseModel):
    """Cached part of the project statistics."""

    total: int
    by_status: dict[str, int]
    by_priority: dict[str, int]


def _validate_title(title: Any) -> str:
    if not isinstance(title, str) or not 3 <= len(title.strip()) <= 200:
        raise ValidationError("Task title must be between 3 and 200 characters.")
    return title.strip()


def _validate_description(description: Any) -> str:
    if not isinstance(description, str) or len(description) > 1000:
        raise ValidationError("Task description must be at most 1000 characters.")
    return description


def _parse_due_date(value: Any) -> datetime | None:
    try:
        due_date = _due_date_adapter.validate_python(value)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid due date.") from exc
    if due_date is None:
        return None
    # Stored as UTC so overdue comparisons work on stores without tz support.
    if due_date.tzinfo is None:
        return due_date.replace(tzinfo=timezone.utc)
    return due_date.astimezone(timezone.utc)


def _parse_enum(enum_type: type[TaskStatus] | type[TaskPriority], value: Any, label: str) -> Any:
    try:
        return enum_type(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown task {label}.") from exc


class TaskService:
    """High-level business orchestration for ``Task`` entities.

    Cache invalidation and notifications run after the commit and are
    best-effort; their failures never change the result of an operation.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        cache: ProjectCache | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._session = session
        self._repository = TaskRepository(session)
        self._project_repository = ProjectRepository(session)
        self._user_repository = UserRepository(session)
        self._cache = cache or ProjectCache(None)
        self._notifier = notifier or Notifier(None)

    @property
    def repository(self) -> TaskRepository:
        return self._repository

    async def _load_project(self, project_id: int) -> tuple[Project, list[ProjectMember]]:
        project = await self._project_repository.get(project_id)
        if project is None:
            raise NotFoundError.for_resource("Project")
        return project, await self._project_repository.list_members(project_id)

    async def _load_task(self, task_id: int) -> tuple[Task, Project, list[ProjectMember]]:
        task = await self._repository.get(task_id)
        if task is None:
            raise NotFoundError.for_resource("Task")
        project, members = await self._load_project(task.project_id)
        return task, project, members

    async def _ensure_assignable(self, user_id: int, members: Sequence[ProjectMember]) -> None:
        user = await self._user_repository.get(user_id)
        if user is None or not any(member.user_id == user_id for member in members):
            raise BadRequestError("Assigned user must be a project member.", details={"assigned_to": user_id})

    async def _after_write(self, project_id: int) -> None:
        await self._cache.invalidate_project(project_id)

    def _notify_assigned(self, task: Task) -> None:
        if task.assigned_to is None:
            return
        self._notifier.notify(
            NotificationKind.TASK_ASSIGNED,
            task.assigned_to,
            f"You have been assigned to task: {task.title}",
            task_id=task.id,
            project_id=task.project_id,
        )

    def _notify_status_changed(self, task: Task) -> None:
        if task.assigned_to is None:
            return
        self._notifier.notify(
            NotificationKind.TASK_STATUS_CHANGED,
            task.assigned_to,
            f'Task "{task.title}" status changed to {task.status.value}',
            task_id=task.id,
            project_id=task.project_id,
        )

    async def create_task(
        self,
        requester: Requester,
        project_id: int,
        *,
        title: str,
        description: str = "",
        priority: TaskPriority = TaskPriority.MEDIUM,
        assigned_to: int | None = None,
        due_date: datetime | str | None = None,
    ) -> Task:
        """Create a TODO task in ``project_id`` on behalf of the requester."""

        project, members = await self._load_project(project_id)
        ensure_allowed(Action.CREATE_TASK, requester, project, members)
        task = Task(
            title=_validate_title(title),
            description=_validate_description(description),
            priority=_parse_enum(TaskPriority, priority, "priority"),
            status=TaskStatus.TODO,
            project_id=project_id,
            created_by=requester.user_id,
            due_date=_parse_due_date(due_date),
        )
        if assigned_to is not None:
            await self._ensure_assignable(assigned_to, members)
            task.assigned_to = assigned_to

        await self._repository.add(task)
        await self._session.commit()
        await self._repository.refresh(task)
        logger.info("Created task %s", task.id, extra={"task_id": task.id, "project_id": project_id})

        await self._after_write(project_id)
        self._notify_assigned(task)
        return task

    async def list_tasks(
        self,
        requester: Requester,
        project_id: int,
        *,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        assigned_to: int | None = None,
        page: int = 1,
        limit: int | None = None,
        sort_by: str = "created_at",
        order: str = "desc",
    ) -> TaskListResponse:
        """Return a filtered page of the project's tasks.

        Sorting by ``priority`` orders by creation time.
        """

        project, members = await self._load_project(project_id)
        ensure_allowed(Action.VIEW_PROJECT, requester, project, members)

        limit = get_settings().default_page_size if limit is None else limit
        validate_page(page, limit)
        if sort_by not in TASK_SORT_FIELDS:
            raise ValidationError("Unknown sort field.", details={"sort_by": sort_by})
        if order not in SORT_ORDERS:
            raise ValidationError("Unknown sort order.", details={"order": order})
        status = _parse_enum(TaskStatus, status, "status") if status is not None else None
        priority = _parse_enum(TaskPriority, priority, "priority") if priority is not None else None

        async def _build() -> TaskListResponse:
            tasks, total = await self._repository.list_paginated(
                project_id=project_id,
                status=status,
                priority=priority,
                assigned_to=assigned_to,
                sort_by=sort_by,
                descending=order == "desc",
                limit=limit,
                offset=(page - 1) * limit,
            )
            return TaskListResponse(
                data=[TaskRead.model_validate(task) for task in tasks],
                pagination=Pagination.build(page=page, limit=limit, total=total),
            )

        query = (
            f"status={status.value if status else ''}"
            f"&priority={priority.value if priority else ''}"
            f"&assigned_to={assigned_to or ''}"
            f"&page={page}&limit={limit}&sort_by={sort_by}&order={order}"
        )
        return await self._cache.get_or_set(task_list_key(project_id, query), _build, model=TaskListResponse)

    async def get_task(self, requester: Requester, task_id: int) -> TaskDetails:
        task, project, members = await self._load_task(task_id)
        ensure_allowed(Action.VIEW_TASK, requester, project, members, task)
        return TaskDetails(task=task, comments=await self._repository.list_comments(task_id))

    async def update_task(self, requester: Requester, task_id: int, changes: Mapping[str, Any]) -> Task:
        """Apply a partial update; every check runs before any field changes.

        A ``status`` equal to the current one is ignored. A different one
        needs ``change_task_status`` and a valid transition.
        """

        unknown = set(changes) - _TASK_UPDATE_FIELDS
        if unknown:
            raise ValidationError("Unknown task fields.", details={"fields": sorted(unknown)})

        task, project, members = await self._load_task(task_id)
        ensure_allowed(Action.EDIT_TASK, requester, project, members, task)

        updates: dict[str, Any] = {}
        if "title" in changes:
            updates["title"] = _validate_title(changes["title"])
        if "description" in changes:
            updates["description"] = _validate_description(changes["description"])
        if "priority" in changes:
            updates["priority"] = _parse_enum(TaskPriority, changes["priority"], "priority")
        if "due_date" in changes:
            updates["due_date"] = _parse_due_date(changes["due_date"])

        new_status: TaskStatus | None = None
        if "status" in changes:
            target = _parse_enum(TaskStatus, changes["status"], "status")
            if target != task.status:
                ensure_allowed(Action.CHANGE_TASK_STATUS, requester, project, members, task)
                ensure_transition(task.status, target)
                new_status = target

        assignee_changed = False
        if "assigned_to" in changes and changes["assigned_to"] != task.assigned_to:
            new_assignee = changes["assigned_to"]
            if new_assignee is not None and (isinstance(new_assignee, bool) or not isinstance(new_assignee, int)):
                raise ValidationError("Assigned user id must be an integer.")
            if new_assignee is not None:
                await self._ensure_assignable(new_assignee, members)
            updates["assigned_to"] = new_assignee
            assignee_changed = True

        for field_name, value in updates.items():
            setattr(task, field_name, value)
        if new_status is not None:
            apply_transition(task, new_status)

        await self._session.commit()
        await self._repository.refresh(task)

        await self._after_write(task.project_id)
        if assignee_changed:
            self._notify_assigned(task)
        if new_status is not None:
            self._notify_status_changed(task)
        return task

    async def change_status(self, requester: Requester, task_id: int, status: TaskStatus) -> Task:
        """Move the task along the workflow; same-state requests are rejected."""

        task, project, members = await self._load_task(task_id)
        ensure_allowed(Action.CHANGE_TASK_STATUS, requester, project, members, task)
        apply_transition(task, _parse_enum(TaskStatus, status, "status"), now=utcnow())
        await self._session.commit()
        await self._repository.refresh(task)

        await self._after_write(task.project_id)
        self._notify_status_changed(task)
        return task

    async def assign_task(self, requester: Requester, task_id: int, assigned_to: int) -> Task:
        task, project, members = await self._load_task(task_id)
        ensure_allowed(Action.ASSIGN_TASK, requester, project, members, task)
        await self._ensure_assignable(assigned_to, members)

        changed = task.assigned_to != assigned_to
        task.assigned_to = assigned_to
        await self._session.commit()
        await self._repository.refresh(task)

        await self._after_write(task.project_id)
        if changed:
            self._notify_assigned(task)
        return task

    async def delete_task(self, requester: Requester, task_id: int) -> None:
        task, project, members = await self._load_task(task_id)
        ensure_allowed(Action.DELETE_TASK, requester, project, members, task)
        project_id = task.project_id
        await self._repository.delete_with_comments(task)
        await self._session.commit()
        logger.info("Deleted task %s", task_id, extra={"task_id": task_id, "project_id": project_id})
        await self._after_write(project_id)

    async def add_comment(self, requester: Requester, task_id: int, text: str) -> TaskDetails:
        task, project, members = await self._load_task(task_id)
        ensure_allowed(Action.COMMENT, requester, project, members, task)
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Comment text must not be empty.")

        await self._repository.add_comment(TaskComment(task_id=task_id, author_id=requester.user_id, text=text.strip()))
        await self._session.commit()
        await self._after_write(task.project_id)
        return TaskDetails(task=task, comments=await self._repository.list_comments(task_id))

    async def get_statistics(self, requester: Requester, project_id: int) -> TaskStatistics:
        """Count tasks by status and priority, plus open tasks past their due date."""

        project, members = await self._load_project(project_id)
        ensure_allowed(Action.VIEW_PROJECT, requester, project, members)

        async def _build() -> _TaskBuckets:
            by_status = {status.value: 0 for status in TaskStatus}
            for status, count in (await self._repository.count_by_status(project_id)).items():
                by_status[status.value] = count
            by_priority = {priority.value: 0 for priority in TaskPriority}
            for priority, count in (await self._repository.count_by_priority(project_id)).items():
                by_priority[priority.value] = count
            return _TaskBuckets(total=sum(by_status.values()), by_status=by_status, by_priority=by_priority)

        buckets = await self._cache.get_or_set(task_statistics_key(project_id), _build, model=_TaskBuckets)
        # Not cached: overdue depends on the current time.
        overdue = await self._repository.count_overdue(project_id, now=utcnow())
        return TaskStatistics(**buckets.model_dump(), overdue=overdue)


__all__ = ["SORT_ORDERS", "TASK_SORT_FIELDS", "TaskDetails", "TaskService"]
