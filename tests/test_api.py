from __future__ import annotations

import pytest
from fastapi import status
from httpx import AsyncClient
from mongomock_motor import AsyncMongoMockClient

from taskflow.models import GlobalRole
from taskflow.notifications import NotificationInbox, NotificationKind, init_notification_store, set_notification_client

pytestmark = pytest.mark.asyncio


async def test_health_endpoint(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "ok"
    assert response.json()["environment"] == "test"
    assert "X-Request-ID" in response.headers


async def test_requests_without_valid_token_are_rejected(client: AsyncClient) -> None:
    missing = await client.get("/api/projects")
    assert missing.status_code == status.HTTP_401_UNAUTHORIZED
    assert missing.json()["code"] == "unauthorized"
    assert missing.headers["WWW-Authenticate"] == "Bearer"

    garbage = await client.get("/api/projects", headers={"Authorization": "Bearer not-a-jwt"})
    assert garbage.status_code == status.HTTP_401_UNAUTHORIZED


async def test_project_and_task_flow_over_http(client: AsyncClient, register) -> None:
    manager = await register("Maya", GlobalRole.MANAGER)
    member = await register("Uma")
    outsider = await register("Otto")

    forbidden = await client.post("/api/projects", json={"name": "Side"}, headers=member.headers)
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN
    assert forbidden.json()["code"] == "forbidden"

    created = await client.post(
        "/api/projects", json={"name": "Launch", "description": "v1"}, headers=manager.headers
    )
    assert created.status_code == status.HTTP_201_CREATED
    project = created.json()
    assert [entry["role"] for entry in project["members"]] == ["OWNER"]

    added = await client.post(
        f"/api/projects/{project['id']}/members",
        json={"user_id": member.id, "role": "MEMBER"},
        headers=manager.headers,
    )
    assert added.status_code == status.HTTP_201_CREATED
    assert len(added.json()["members"]) == 2

    duplicate = await client.post(
        f"/api/projects/{project['id']}/members", json={"user_id": member.id}, headers=manager.headers
    )
    assert duplicate.status_code == status.HTTP_409_CONFLICT

    rejected = await client.post(
        f"/api/projects/{project['id']}/tasks",
        json={"title": "Stray", "assigned_to": outsider.id},
        headers=manager.headers,
    )
    assert rejected.status_code == status.HTTP_400_BAD_REQUEST

    task_response = await client.post(
        f"/api/projects/{project['id']}/tasks",
        json={"title": "Write release notes", "assigned_to": member.id, "priority": "HIGH"},
        headers=manager.headers,
    )
    assert task_response.status_code == status.HTTP_201_CREATED
    task = task_response.json()
    assert task["status"] == "TODO"

    skip = await client.patch(f"/api/tasks/{task['id']}", json={"status": "DONE"}, headers=member.headers)
    assert skip.status_code == status.HTTP_400_BAD_REQUEST
    assert skip.json()["message"] == "Invalid status transition from TODO to DONE"

    moved = await client.patch(
        f"/api/tasks/{task['id']}/status", json={"status": "IN_PROGRESS"}, headers=member.headers
    )
    assert moved.status_code == status.HTTP_200_OK
    assert moved.json()["status"] == "IN_PROGRESS"

    commented = await client.post(
        f"/api/tasks/{task['id']}/comments", json={"text": "On it"}, headers=member.headers
    )
    assert commented.status_code == status.HTTP_201_CREATED
    assert [comment["text"] for comment in commented.json()["comments"]] == ["On it"]

    listing = await client.get(
        f"/api/projects/{project['id']}/tasks",
        params={"status": "IN_PROGRESS", "limit": 1},
        headers=member.headers,
    )
    assert listing.status_code == status.HTTP_200_OK
    assert listing.json()["pagination"] == {"page": 1, "limit": 1, "total": 1, "pages": 1}

    stats = await client.get(f"/api/projects/{project['id']}/tasks/stats", headers=member.headers)
    assert stats.json()["by_status"] == {"TODO": 0, "IN_PROGRESS": 1, "DONE": 0}
    assert stats.json()["by_priority"]["HIGH"] == 1

    hidden = await client.get(f"/api/tasks/{task['id']}", headers=outsider.headers)
    assert hidden.status_code == status.HTTP_403_FORBIDDEN

    not_deletable = await client.delete(f"/api/tasks/{task['id']}", headers=member.headers)
    assert not_deletable.status_code == status.HTTP_403_FORBIDDEN

    removed = await client.delete(f"/api/projects/{project['id']}", headers=manager.headers)
    assert removed.status_code == status.HTTP_204_NO_CONTENT

    gone = await client.get(f"/api/tasks/{task['id']}", headers=manager.headers)
    assert gone.status_code == status.HTTP_404_NOT_FOUND
    assert gone.json()["code"] == "not_found"


async def test_request_validation_errors(client: AsyncClient, register) -> None:
    manager = await register("Maya", GlobalRole.MANAGER)
    project = (await client.post("/api/projects", json={"name": "Launch"}, headers=manager.headers)).json()

    short_title = await client.post(
        f"/api/projects/{project['id']}/tasks", json={"title": "ab"}, headers=manager.headers
    )
    assert short_title.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert short_title.json()["code"] == "validation_error"

    task = (
        await client.post(f"/api/projects/{project['id']}/tasks", json={"title": "Real"}, headers=manager.headers)
    ).json()
    unknown_field = await client.patch(
        f"/api/tasks/{task['id']}", json={"project_id": 99}, headers=manager.headers
    )
    assert unknown_field.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    bad_page = await client.get("/api/projects", params={"page": 0}, headers=manager.headers)
    assert bad_page.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_notification_inbox_endpoints(client: AsyncClient, register) -> None:
    await init_notification_store(client=AsyncMongoMockClient(), force=True)
    try:
        member = await register("Uma")
        stored = await NotificationInbox().record(
            kind=NotificationKind.TASK_ASSIGNED,
            user_id=member.id,
            message="You have been assigned to task: Ship",
            task_id=1,
            project_id=1,
        )

        listing = await client.get("/api/notifications", headers=member.headers)
        assert listing.status_code == status.HTTP_200_OK
        assert [item["id"] for item in listing.json()] == [str(stored.id)]

        marked = await client.post(f"/api/notifications/{stored.id}/read", headers=member.headers)
        assert marked.json()["read"] is True

        unread = await client.get("/api/notifications", params={"unread": "true"}, headers=member.headers)
        assert unread.json() == []
    finally:
        set_notification_client(None)
