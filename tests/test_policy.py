from __future__ import annotations

import pytest

from taskflow.errors import ForbiddenError
from taskflow.models import GlobalRole, Project, ProjectMember, ProjectRole, Task
from taskflow.policy import (
    Action,
    Relation,
    Requester,
    can_create_project,
    ensure_allowed,
    ensure_can_create_project,
    is_allowed,
    relations_for,
)

OWNER, PROJECT_OWNER_ROLE, MANAGER, MEMBER, OUTSIDER, ASSIGNEE, ADMIN = 1, 2, 3, 4, 5, 6, 7


@pytest.fixture()
def project() -> Project:
    return Project(id=10, name="Launch", description="v1", owner_id=OWNER)


@pytest.fixture()
def members() -> list[ProjectMember]:
    return [
        ProjectMember(id=1, project_id=10, user_id=OWNER, role=ProjectRole.OWNER),
        ProjectMember(id=2, project_id=10, user_id=PROJECT_OWNER_ROLE, role=ProjectRole.OWNER),
        ProjectMember(id=3, project_id=10, user_id=MANAGER, role=ProjectRole.MANAGER),
        ProjectMember(id=4, project_id=10, user_id=MEMBER, role=ProjectRole.MEMBER),
    ]


def _task(created_by: int = OWNER, assigned_to: int | None = None) -> Task:
    return Task(id=20, title="Ship it", project_id=10, created_by=created_by, assigned_to=assigned_to)


def _member(user_id: int) -> Requester:
    return Requester(user_id=user_id, role=GlobalRole.MEMBER)


def test_relations_reflect_ownership_roster_and_task_links(project, members) -> None:
    task = _task(created_by=MANAGER, assigned_to=MANAGER)
    relations = relations_for(_member(MANAGER), project, members, task)
    assert relations == {Relation.MANAGER_ROLE, Relation.TASK_CREATOR, Relation.TASK_ASSIGNEE}

    owner_relations = relations_for(_member(OWNER), project, members)
    assert owner_relations == {Relation.PROJECT_OWNER, Relation.OWNER_ROLE}

    assert relations_for(_member(OUTSIDER), project, members) == frozenset()


def test_admin_overrides_every_action(project, members) -> None:
    admin = Requester(user_id=ADMIN, role=GlobalRole.ADMIN)
    task = _task()
    for action in Action:
        assert is_allowed(action, admin, project, members, task)


@pytest.mark.parametrize(
    ("user_id", "allowed"),
    [(OWNER, True), (PROJECT_OWNER_ROLE, True), (MANAGER, True), (MEMBER, True), (OUTSIDER, False)],
)
def test_view_project_requires_ownership_or_roster_entry(project, members, user_id, allowed) -> None:
    assert is_allowed(Action.VIEW_PROJECT, _member(user_id), project, members) is allowed


@pytest.mark.parametrize("action", [Action.EDIT_PROJECT, Action.DELETE_PROJECT])
def test_only_owner_edits_or_deletes_project(project, members, action) -> None:
    assert is_allowed(action, _member(OWNER), project, members)
    for user_id in (PROJECT_OWNER_ROLE, MANAGER, MEMBER, OUTSIDER):
        assert not is_allowed(action, _member(user_id), project, members)


def test_member_management_excludes_non_owner_owner_role(project, members) -> None:
    assert is_allowed(Action.MANAGE_MEMBERS, _member(OWNER), project, members)
    assert is_allowed(Action.MANAGE_MEMBERS, _member(MANAGER), project, members)
    assert not is_allowed(Action.MANAGE_MEMBERS, _member(PROJECT_OWNER_ROLE), project, members)
    assert not is_allowed(Action.MANAGE_MEMBERS, _member(MEMBER), project, members)


def test_plain_member_cannot_create_tasks(project, members) -> None:
    assert is_allowed(Action.CREATE_TASK, _member(PROJECT_OWNER_ROLE), project, members)
    assert is_allowed(Action.CREATE_TASK, _member(MANAGER), project, members)
    assert not is_allowed(Action.CREATE_TASK, _member(MEMBER), project, members)


def test_assignee_outside_roster_can_view_edit_and_change_status(project, members) -> None:
    task = _task(assigned_to=ASSIGNEE)
    requester = _member(ASSIGNEE)
    assert is_allowed(Action.VIEW_TASK, requester, project, members, task)
    assert is_allowed(Action.COMMENT, requester, project, members, task)
    assert is_allowed(Action.EDIT_TASK, requester, project, members, task)
    assert is_allowed(Action.CHANGE_TASK_STATUS, requester, project, members, task)
    assert not is_allowed(Action.ASSIGN_TASK, requester, project, members, task)
    assert not is_allowed(Action.DELETE_TASK, requester, project, members, task)


def test_plain_member_can_view_and_comment_but_not_edit(project, members) -> None:
    task = _task()
    requester = _member(MEMBER)
    assert is_allowed(Action.VIEW_TASK, requester, project, members, task)
    assert is_allowed(Action.COMMENT, requester, project, members, task)
    assert not is_allowed(Action.EDIT_TASK, requester, project, members, task)
    assert not is_allowed(Action.CHANGE_TASK_STATUS, requester, project, members, task)


def test_delete_task_asymmetry_between_manager_and_owner_role(project, members) -> None:
    foreign_task = _task(created_by=OWNER)
    assert not is_allowed(Action.DELETE_TASK, _member(MANAGER), project, members, foreign_task)
    assert is_allowed(Action.DELETE_TASK, _member(PROJECT_OWNER_ROLE), project, members, foreign_task)

    own_task = _task(created_by=MANAGER)
    assert is_allowed(Action.DELETE_TASK, _member(MANAGER), project, members, own_task)


def test_creator_who_left_roster_loses_task_access(project, members) -> None:
    task = _task(created_by=OUTSIDER)
    assert not is_allowed(Action.DELETE_TASK, _member(OUTSIDER), project, members, task)


def test_ensure_allowed_raises_forbidden(project, members) -> None:
    with pytest.raises(ForbiddenError) as excinfo:
        ensure_allowed(Action.EDIT_PROJECT, _member(MEMBER), project, members)
    assert excinfo.value.code == "forbidden"
    assert excinfo.value.status_code == 403

    with pytest.raises(ForbiddenError, match="Access denied to this task"):
        ensure_allowed(Action.DELETE_TASK, _member(OUTSIDER), project, members, _task(created_by=OUTSIDER))


def test_project_creation_gate_uses_global_role() -> None:
    assert can_create_project(Requester(user_id=1, role=GlobalRole.ADMIN))
    assert can_create_project(Requester(user_id=1, role=GlobalRole.MANAGER))
    assert not can_create_project(Requester(user_id=1, role=GlobalRole.MEMBER))
    with pytest.raises(ForbiddenError):
        ensure_can_create_project(Requester(user_id=1, role=GlobalRole.MEMBER))
