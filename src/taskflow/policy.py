"""Role-based access decisions for projects and tasks.

Every decision is a lookup in ``PERMISSIONS``: an action is allowed when the
requester holds at least one of the relations listed for it. Relations are
derived from the requester's global role, project ownership, roster entry and,
for task actions, whether they created or are assigned to the task.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from .errors import ForbiddenError
from .models import GlobalRole, Project, ProjectMember, ProjectRole, Task


@dataclass(frozen=True, slots=True)
class Requester:
    """Verified identity assertion for the caller of an operation."""

    user_id: int
    role: GlobalRole

    @property
    def is_admin(self) -> bool:
        return self.role == GlobalRole.ADMIN


class Relation(str, Enum):
    ADMIN = "admin"
    PROJECT_OWNER = "project_owner"
    OWNER_ROLE = "owner_role"
    MANAGER_ROLE = "manager_role"
    MEMBER_ROLE = "member_role"
    TASK_CREATOR = "task_creator"
    TASK_ASSIGNEE = "task_assignee"


class Action(str, Enum):
    VIEW_PROJECT = "view_project"
    EDIT_PROJECT = "edit_project"
    DELETE_PROJECT = "delete_project"
    MANAGE_MEMBERS = "manage_members"
    CREATE_TASK = "create_task"
    VIEW_TASK = "view_task"
    COMMENT = "comment"
    EDIT_TASK = "edit_task"
    CHANGE_TASK_STATUS = "change_task_status"
    ASSIGN_TASK = "assign_task"
    DELETE_TASK = "delete_task"


_ROSTER = frozenset({Relation.OWNER_ROLE, Relation.MANAGER_ROLE, Relation.MEMBER_ROLE})

_ROLE_RELATIONS: dict[ProjectRole, Relation] = {
    ProjectRole.OWNER: Relation.OWNER_ROLE,
    ProjectRole.MANAGER: Relation.MANAGER_ROLE,
    ProjectRole.MEMBER: Relation.MEMBER_ROLE,
}

PERMISSIONS: dict[Action, frozenset[Relation]] = {
    Action.VIEW_PROJECT: frozenset({Relation.ADMIN, Relation.PROJECT_OWNER}) | _ROSTER,
    Action.EDIT_PROJECT: frozenset({Relation.ADMIN, Relation.PROJECT_OWNER}),
    Action.DELETE_PROJECT: frozenset({Relation.ADMIN, Relation.PROJECT_OWNER}),
    # OWNER_ROLE alone is deliberately absent here.
    Action.MANAGE_MEMBERS: frozenset({Relation.ADMIN, Relation.PROJECT_OWNER, Relation.MANAGER_ROLE}),
    Action.CREATE_TASK: frozenset(
        {Relation.ADMIN, Relation.PROJECT_OWNER, Relation.OWNER_ROLE, Relation.MANAGER_ROLE}
    ),
    Action.VIEW_TASK: frozenset({Relation.ADMIN, Relation.PROJECT_OWNER, Relation.TASK_ASSIGNEE}) | _ROSTER,
    Action.COMMENT: frozenset({Relation.ADMIN, Relation.PROJECT_OWNER, Relation.TASK_ASSIGNEE}) | _ROSTER,
    Action.EDIT_TASK: frozenset(
        {
            Relation.ADMIN,
            Relation.PROJECT_OWNER,
            Relation.TASK_ASSIGNEE,
            Relation.OWNER_ROLE,
            Relation.MANAGER_ROLE,
        }
    ),
    Action.CHANGE_TASK_STATUS: frozenset(
        {
            Relation.ADMIN,
            Relation.PROJECT_OWNER,
            Relation.TASK_ASSIGNEE,
            Relation.OWNER_ROLE,
            Relation.MANAGER_ROLE,
        }
    ),
    Action.ASSIGN_TASK: frozenset(
        {Relation.ADMIN, Relation.PROJECT_OWNER, Relation.OWNER_ROLE, Relation.MANAGER_ROLE}
    ),
    # MANAGER_ROLE can only delete tasks it created.
    Action.DELETE_TASK: frozenset(
        {Relation.ADMIN, Relation.PROJECT_OWNER, Relation.TASK_CREATOR, Relation.OWNER_ROLE}
    ),
}

PROJECT_CREATOR_ROLES = frozenset({GlobalRole.ADMIN, GlobalRole.MANAGER})

_DENIAL_MESSAGES: dict[Action, str] = {
    Action.VIEW_PROJECT: "Access denied to this project.",
    Action.EDIT_PROJECT: "Only the project owner can update the project.",
    Action.DELETE_PROJECT: "Only the project owner can delete the project.",
    Action.MANAGE_MEMBERS: "Not allowed to manage project members.",
    Action.CREATE_TASK: "Not allowed to create tasks in this project.",
    Action.VIEW_TASK: "Access denied to this task.",
    Action.COMMENT: "Not allowed to comment on this task.",
    Action.EDIT_TASK: "Not allowed to update this task.",
    Action.CHANGE_TASK_STATUS: "Not allowed to change the status of this task.",
    Action.ASSIGN_TASK: "Not allowed to assign this task.",
    Action.DELETE_TASK: "Not allowed to delete this task.",
}


def project_role_of(user_id: int, members: Iterable[ProjectMember]) -> ProjectRole | None:
    """Return the roster role held by ``user_id``, if any."""

    for member in members:
        if member.user_id == user_id:
            return member.role
    return None


def relations_for(
    requester: Requester,
    project: Project,
    members: Iterable[ProjectMember],
    task: Task | None = None,
) -> frozenset[Relation]:
    """Derive every relation the requester holds towards a project or task."""

    relations: set[Relation] = set()
    if requester.is_admin:
        relations.add(Relation.ADMIN)
    if project.owner_id == requester.user_id:
        relations.add(Relation.PROJECT_OWNER)
    role = project_role_of(requester.user_id, members)
    if role is not None:
        relations.add(_ROLE_RELATIONS[role])
    if task is not None:
        if task.created_by == requester.user_id:
            relations.add(Relation.TASK_CREATOR)
        if task.assigned_to is not None and task.assigned_to == requester.user_id:
            relations.add(Relation.TASK_ASSIGNEE)
    return frozenset(relations)


def is_allowed(
    action: Action,
    requester: Requester,
    project: Project,
    members: Iterable[ProjectMember],
    task: Task | None = None,
) -> bool:
    """Return whether ``requester`` may perform ``action``.

    Task actions other than ``view_task`` also require ``view_task``.
    """

    if requester.is_admin:
        return True
    relations = relations_for(requester, project, members, task)
    if task is not None and action is not Action.VIEW_TASK:
        if not relations & PERMISSIONS[Action.VIEW_TASK]:
            return False
    return bool(relations & PERMISSIONS[action])


def ensure_allowed(
    action: Action,
    requester: Requester,
    project: Project,
    members: Iterable[ProjectMember],
    task: Task | None = None,
) -> None:
    """Raise ``ForbiddenError`` unless ``requester`` may perform ``action``."""

    members = list(members)
    if task is not None and action is not Action.VIEW_TASK:
        if not is_allowed(Action.VIEW_TASK, requester, project, members, task):
            raise ForbiddenError(_DENIAL_MESSAGES[Action.VIEW_TASK])
    if not is_allowed(action, requester, project, members, task):
        raise ForbiddenError(_DENIAL_MESSAGES[action])


def can_create_project(requester: Requester) -> bool:
    return requester.role in PROJECT_CREATOR_ROLES


def ensure_can_create_project(requester: Requester) -> None:
    if not can_create_project(requester):
        raise ForbiddenError("Only admins and managers can create projects.")


__all__ = [
    "Action",
    "PERMISSIONS",
    "Relation",
    "Requester",
    "can_create_project",
    "ensure_allowed",
    "ensure_can_create_project",
    "is_allowed",
    "project_role_of",
    "relations_for",
]
