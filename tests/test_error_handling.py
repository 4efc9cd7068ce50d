from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import pytest
from fastapi import FastAPI, status
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from taskflow.models import GlobalRole
from taskflow.repositories import ProjectRepository
from taskflow.services import TaskService

pytestmark = pytest.mark.asyncio

REQUEST_ID = "req-err-1"


def _envelope(response) -> dict[str, Any]:
    payload = response.json()
    assert set(payload) == {"code", "message", "details"}
    assert response.headers["X-Request-ID"] == REQUEST_ID
    assert payload["details"]["request_id"] == REQUEST_ID
    return payload


@pytest.fixture()
async def workspace(client: AsyncClient, register) -> dict[str, Any]:
    """A project owned by a manager with one member and one task assigned to them."""

    manager = await register("Maya", GlobalRole.MANAGER)
    member = await register("Uma")
    manager_headers = {**manager.headers, "X-Request-ID": REQUEST_ID}
    member_headers = {**member.headers, "X-Request-ID": REQUEST_ID}

    project = (await client.post("/api/projects", json={"name": "Launch"}, headers=manager_headers)).json()
    await client.post(
        f"/api/projects/{project['id']}/members", json={"user_id": member.id}, headers=manager_headers
    )
    task = (
        await client.post(
            f"/api/projects/{project['id']}/tasks",
            json={"title": "Write release notes", "assigned_to": member.id},
            headers=manager_headers,
        )
    ).json()
    return {
        "project_id": project["id"],
        "task_id": task["id"],
        "member_id": member.id,
        "manager": manager_headers,
        "member": member_headers,
    }


async def test_forbidden_when_member_creates_project(client: AsyncClient, workspace) -> None:
    response = await client.post("/api/projects", json={"name": "Side"}, headers=workspace["member"])

    assert response.status_code == status.HTTP_403_FORBIDDEN
    payload = _envelope(response)
    assert payload["code"] == "forbidden"
    assert payload["message"] == "Only admins and managers can create projects."


async def test_bad_request_carries_transition_details(client: AsyncClient, workspace) -> None:
    response = await client.patch(
        f"/api/tasks/{workspace['task_id']}/status", json={"status": "DONE"}, headers=workspace["member"]
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    payload = _envelope(response)
    assert payload["code"] == "bad_request"
    assert payload["message"] == "Invalid status transition from TODO to DONE"
    assert payload["details"] == {"request_id": REQUEST_ID, "from": "TODO", "to": "DONE"}


async def test_conflict_on_duplicate_member(client: AsyncClient, workspace) -> None:
    response = await client.post(
        f"/api/projects/{workspace['project_id']}/members",
        json={"user_id": workspace["member_id"]},
        headers=workspace["manager"],
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    payload = _envelope(response)
    assert payload["code"] == "conflict"
    assert payload["message"] == "User is already a member of this project."


async def test_not_found_for_missing_task(client: AsyncClient, workspace) -> None:
    response = await client.get("/api/tasks/9999", headers=workspace["manager"])

    assert response.status_code == status.HTTP_404_NOT_FOUND
    payload = _envelope(response)
    assert payload == {"code": "not_found", "message": "Task not found.", "details": {"request_id": REQUEST_ID}}


async def test_domain_validation_error_for_blank_comment(client: AsyncClient, workspace) -> None:
    response = await client.post(
        f"/api/tasks/{workspace['task_id']}/comments", json={"text": "   "}, headers=workspace["member"]
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    payload = _envelope(response)
    assert payload["code"] == "validation_error"
    assert payload["message"] == "Comment text must not be empty."


async def test_request_validation_error_lists_fields(client: AsyncClient, workspace) -> None:
    response = await client.post(
        f"/api/projects/{workspace['project_id']}/tasks", json={"title": "ab"}, headers=workspace["manager"]
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    payload = _envelope(response)
    assert payload["code"] == "validation_error"
    assert payload["message"] == "Request validation failed."
    assert [error["loc"] for error in payload["details"]["errors"]] == [["body", "title"]]


async def test_internal_error_when_cascade_delete_fails(
    client: AsyncClient, workspace, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def failing_delete(self: ProjectRepository, project) -> None:
        raise OperationalError("DELETE FROM tasks", {}, Exception("disk I/O error"))

    monkeypatch.setattr(ProjectRepository, "delete_cascade", failing_delete)
    response = await client.delete(f"/api/projects/{workspace['project_id']}", headers=workspace["manager"])

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    payload = _envelope(response)
    assert payload == {
        "code": "internal_error",
        "message": "Failed to delete project.",
        "details": {"request_id": REQUEST_ID},
    }

    still_there = await client.get(f"/api/projects/{workspace['project_id']}", headers=workspace["manager"])
    assert still_there.status_code == status.HTTP_200_OK


async def test_unauthenticated_request(client: AsyncClient) -> None:
    response = await client.get("/api/projects", headers={"X-Request-ID": REQUEST_ID})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    payload = _envelope(response)
    assert payload["code"] == "unauthorized"
    assert payload["message"] == "Not authenticated."


@pytest.fixture()
async def lenient_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


async def test_unexpected_failure_hides_internal_details(
    lenient_client: AsyncClient, workspace, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def broken_statistics(self: TaskService, requester, project_id: int):
        raise RuntimeError("Sensitive detail")

    monkeypatch.setattr(TaskService, "get_statistics", broken_statistics)
    response = await lenient_client.get(
        f"/api/projects/{workspace['project_id']}/tasks/stats", headers=workspace["member"]
    )

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {
        "code": "internal_error",
        "message": "Internal server error.",
        "details": {"request_id": REQUEST_ID},
    }
    assert "Sensitive" not in response.text
