"""Tests for database initialization and system role seeding."""

import pytest
import pytest_asyncio

from expense_rbac.core.config import Settings
from expense_rbac.domain.services.feature_catalog import default_feature_graph
from expense_rbac.domain.services.system_roles import SYSTEM_ROLES
from expense_rbac.infrastructure.persistence.database import (
    DatabaseManager,
    init_database,
    seed_system_roles,
)
from expense_rbac.infrastructure.persistence.role_data_store import SqlAlchemyRoleDataStore


@pytest_asyncio.fixture
async def db():
    manager = DatabaseManager(
        Settings(
            environment="testing",
            database_url="sqlite+aiosqlite:///:memory:",
            seed_system_roles=True,
        )
    )
    yield manager
    await manager.disconnect()


@pytest.mark.asyncio
async def test_init_database_seeds_system_roles(db):
    await init_database(db)

    store = SqlAlchemyRoleDataStore(db.session_factory)
    roles = {role.name: role for role in await store.list_roles()}

    assert set(roles) == {definition.name for definition in SYSTEM_ROLES}
    assert all(role.is_system_role for role in roles.values())
    assert roles["manager"].permissions == frozenset(
        {"expense_read", "expense_write", "report_access"}
    )


@pytest.mark.asyncio
async def test_seeded_roles_get_full_visibility_rows(db):
    await init_database(db)

    store = SqlAlchemyRoleDataStore(db.session_factory)
    roles = {role.name: role for role in await store.list_roles()}
    matrix = await store.get_feature_visibility_matrix()

    teacher = matrix[roles["teacher"].id]
    assert len(teacher) == len(default_feature_graph.features)
    active = {feature_id for feature_id, entry in teacher.items() if entry.is_active}
    assert active == {"expenses", "settings", "navigation", "notifications", "themes"}


@pytest.mark.asyncio
async def test_seeding_is_idempotent(db):
    await init_database(db)

    assert await seed_system_roles(db) == 0


@pytest.mark.asyncio
async def test_seeding_is_audited_as_system(db):
    await init_database(db)

    store = SqlAlchemyRoleDataStore(db.session_factory)
    entries = await store.list_audit_log(resource_type="role", limit=500)

    assert len(entries) == len(SYSTEM_ROLES)
    assert all(entry.user_id is None for entry in entries)


@pytest.mark.asyncio
async def test_check_connection(db):
    assert await db.check_connection() is True
