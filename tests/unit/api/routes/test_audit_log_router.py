"""Unit tests for the settings audit log router."""

from datetime import datetime, timezone

import pytest

from expense_rbac.domain.entities.audit_log import AuditLogEntry

ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "administrator"}
MANAGER = {"X-User-Id": "manager-1", "X-User-Role": "manager"}


@pytest.mark.asyncio
async def test_list_audit_log(client, store, monkeypatch):
    calls = []
    entry = AuditLogEntry(
        id="log-1",
        user_id="admin-1",
        action="update",
        resource_type="feature_visibility",
        resource_id="teacher-id:charts",
        old_values={"is_enabled": False},
        new_values={"is_enabled": True},
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )

    async def list_audit_log(**filters):
        calls.append(filters)
        return [entry]

    monkeypatch.setattr(store, "list_audit_log", list_audit_log)

    response = await client.get(
        "/api/v1/audit-log",
        params={"resource_type": "feature_visibility", "limit": 10},
        headers=ADMIN,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["limit"] == 10
    assert data["items"][0]["resource_id"] == "teacher-id:charts"
    assert data["items"][0]["new_values"] == {"is_enabled": True}
    assert calls == [
        {"user_id": None, "resource_type": "feature_visibility", "action": None, "limit": 10}
    ]


@pytest.mark.asyncio
async def test_requires_administrator(client):
    response = await client.get("/api/v1/audit-log", headers=MANAGER)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_limit_is_bounded(client):
    response = await client.get("/api/v1/audit-log", params={"limit": 0}, headers=ADMIN)

    assert response.status_code == 422
