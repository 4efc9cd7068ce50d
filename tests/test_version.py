from __future__ import annotations

import pytest
from httpx import AsyncClient

from taskflow import __version__
from taskflow.core.config import Settings

pytestmark = pytest.mark.asyncio


async def test_health_reports_package_version(client: AsyncClient, api_settings: Settings) -> None:
    response = await client.get("/health")

    assert api_settings.version == __version__
    assert response.json() == {"status": "ok", "version": __version__, "environment": "test"}


async def test_openapi_document_is_served_under_api_prefix(client: AsyncClient) -> None:
    response = await client.get("/api/openapi.json")

    assert response.status_code == 200
    document = response.json()
    assert document["info"]["version"] == __version__
    assert "/api/projects/{project_id}/tasks/stats" in document["paths"]
    assert "/api/tasks/{task_id}/status" in document["paths"]
