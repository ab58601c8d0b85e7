"""Tests for the application factory, health checks and error mapping."""

import pytest
from httpx import ASGITransport, AsyncClient

from expense_rbac.domain.exceptions import (
    BulkOperationError,
    DuplicateRoleError,
    PersistenceError,
    RoleDeletionError,
    RoleNotFoundError,
)
from expense_rbac.infrastructure.api.app import create_app, error_status_code


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_api_root(client):
    response = await client.get("/api/v1")

    assert response.json()["api_version"] == "v1"


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "cid_test"})

    assert response.headers["X-Correlation-ID"] == "cid_test"


@pytest.mark.asyncio
async def test_correlation_id_is_generated(client):
    response = await client.get("/live")

    assert response.headers["X-Correlation-ID"].startswith("cid_")


@pytest.mark.asyncio
async def test_not_started():
    app = create_app()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/access/me", headers={"X-User-Id": "u1"})

    assert response.status_code == 503
    assert response.json()["detail"] == "Access control is not initialized"


@pytest.mark.parametrize(
    "error,status_code",
    [
        (RoleNotFoundError("r1"), 404),
        (DuplicateRoleError(), 409),
        (RoleDeletionError("in use"), 400),
        (BulkOperationError("rejected"), 422),
        (PersistenceError("down"), 502),
    ],
)
def test_error_status_codes(error, status_code):
    assert error_status_code(error) == status_code
