"""Pytest configuration for unit tests.

Provides an in-memory RoleDataStore seeded with the four system roles, the
services built on top of it, and an in-memory SQLite database for the
persistence tests.
"""

import itertools
from dataclasses import replace
from typing import Any, AsyncGenerator, Iterable, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from expense_rbac.core.config import Settings
from expense_rbac.core.hooks import HookRegistry
from expense_rbac.domain.entities.audit_log import AuditLogEntry
from expense_rbac.domain.entities.feature import FeatureVisibility
from expense_rbac.domain.entities.role import NewRole, Role
from expense_rbac.domain.exceptions import (
    DuplicateRoleError,
    PersistenceError,
    RoleDeletionError,
    RoleNotFoundError,
)
from expense_rbac.domain.services.access_control import RoleBasedAccess
from expense_rbac.domain.services.feature_catalog import default_feature_graph
from expense_rbac.domain.services.feature_visibility_service import FeatureVisibilityManager
from expense_rbac.domain.services.role_data_store import RoleDataStore, VisibilityMatrix
from expense_rbac.domain.services.role_service import RoleService
from expense_rbac.domain.services.system_roles import SYSTEM_ROLES
from expense_rbac.infrastructure.persistence.database import Base


class InMemoryRoleDataStore(RoleDataStore):
    """RoleDataStore keeping everything in dictionaries.

    ``fail_writes`` makes every write raise PersistenceError; ``writes``
    records each visibility write as ``(kind, [(role_id, feature_id, active)])``.
    """

    def __init__(self) -> None:
        self.roles: dict[str, Role] = {}
        self.visibility: dict[str, dict[str, FeatureVisibility]] = {}
        self.writes: list[tuple[str, list[tuple[str, str, bool]]]] = []
        self.fail_writes = False
        self.fail_reads = False
        self._ids = itertools.count(1)

    def add_role(
        self,
        name: str,
        permissions: Iterable[str],
        features: Iterable[str] = (),
        is_system_role: bool = False,
        user_count: int = 0,
        role_id: Optional[str] = None,
    ) -> Role:
        """Seed a role and its active features directly."""
        role = Role(
            id=role_id or f"role-{next(self._ids)}",
            name=name,
            display_name=name.replace("_", " ").title(),
            description=f"{name} role",
            permissions=frozenset(permissions),
            is_system_role=is_system_role,
            user_count=user_count,
        )
        self.roles[role.id] = role
        entries = self.visibility.setdefault(role.id, {})
        for feature_id in features:
            feature = default_feature_graph.get_feature(feature_id)
            entries[feature_id] = FeatureVisibility.for_state(role.id, feature, True)
        return role

    def active(self, role_id: str) -> set[str]:
        return {fid for fid, e in self.visibility.get(role_id, {}).items() if e.is_active}

    def _check_write(self) -> None:
        if self.fail_writes:
            raise PersistenceError("Failed to write: store unavailable")

    async def list_roles(self) -> list[Role]:
        if self.fail_reads:
            raise PersistenceError("Failed to list roles: store unavailable")
        return list(self.roles.values())

    async def create_role(self, role: NewRole) -> Role:
        self._check_write()
        if any(r.name == role.name for r in self.roles.values()):
            raise DuplicateRoleError()
        created = Role(
            id=f"role-{next(self._ids)}",
            name=role.name,
            display_name=role.display_name,
            description=role.description,
            permissions=frozenset(role.permissions),
            is_system_role=role.is_system_role,
        )
        self.roles[created.id] = created
        return created

    async def update_role(self, role_id: str, changes: dict[str, Any]) -> None:
        self._check_write()
        if role_id not in self.roles:
            raise RoleNotFoundError(role_id)
        self.roles[role_id] = replace(self.roles[role_id], **changes)

    async def delete_role(self, role_id: str) -> None:
        self._check_write()
        role = self.roles.get(role_id)
        if role is None:
            raise RoleNotFoundError(role_id)
        if role.user_count:
            raise RoleDeletionError(f"Cannot delete role with {role.user_count} assigned users")
        del self.roles[role_id]
        self.visibility.pop(role_id, None)

    async def upsert_role_permissions(self, role_id: str, permissions: list[str]) -> None:
        self._check_write()
        self.roles[role_id] = replace(self.roles[role_id], permissions=frozenset(permissions))

    async def get_feature_visibility_matrix(self) -> VisibilityMatrix:
        if self.fail_reads:
            raise PersistenceError("Failed to load feature visibility: store unavailable")
        return {
            role_id: {fid: replace(entry) for fid, entry in entries.items()}
            for role_id, entries in self.visibility.items()
        }

    async def upsert_feature_visibility(self, entry: FeatureVisibility) -> None:
        self._check_write()
        self.visibility.setdefault(entry.role_id, {})[entry.feature_id] = replace(entry)
        self.writes.append(("single", [(entry.role_id, entry.feature_id, entry.is_active)]))

    async def bulk_upsert_feature_visibility(self, entries: Iterable[FeatureVisibility]) -> int:
        self._check_write()
        entries = list(entries)
        for entry in entries:
            self.visibility.setdefault(entry.role_id, {})[entry.feature_id] = replace(entry)
        self.writes.append(
            ("bulk", [(e.role_id, e.feature_id, e.is_active) for e in entries])
        )
        return len(entries)

    async def list_audit_log(
        self,
        user_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 100,
    ) -> list[AuditLogEntry]:
        return []


@pytest.fixture
def settings() -> Settings:
    """Settings for service tests, with a short toggle quiet period."""
    return Settings(
        environment="testing",
        database_url="sqlite+aiosqlite:///:memory:",
        toggle_debounce_seconds=0.05,
        seed_system_roles=False,
    )


@pytest.fixture
def store() -> InMemoryRoleDataStore:
    """In-memory store seeded with the system roles and their default features.

    Role ids are ``<name>-id`` (``administrator-id``, ``manager-id``, ...).
    """
    store = InMemoryRoleDataStore()
    user_counts = {"administrator": 1, "manager": 2, "teacher": 0, "account_officer": 4}
    for definition in SYSTEM_ROLES:
        store.add_role(
            definition.name,
            definition.permissions,
            features=definition.features,
            is_system_role=True,
            user_count=user_counts[definition.name],
            role_id=f"{definition.name}-id",
        )
    return store


@pytest.fixture
def events() -> HookRegistry:
    return HookRegistry()


@pytest.fixture
def role_service(store: InMemoryRoleDataStore, events: HookRegistry) -> RoleService:
    return RoleService(store, events=events)


@pytest_asyncio.fixture
async def visibility(
    store: InMemoryRoleDataStore,
    role_service: RoleService,
    events: HookRegistry,
    settings: Settings,
) -> AsyncGenerator[FeatureVisibilityManager, None]:
    """Loaded visibility manager; queued toggles are dropped on teardown."""
    manager = FeatureVisibilityManager(store, role_service, events=events, settings=settings)
    await manager.load()
    store.writes.clear()
    yield manager
    manager.queue.cancel()


@pytest.fixture
def access(
    role_service: RoleService,
    visibility: FeatureVisibilityManager,
    settings: Settings,
) -> RoleBasedAccess:
    return RoleBasedAccess(role_service, visibility, settings=settings)


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a fresh in-memory SQLite database."""
    from expense_rbac.infrastructure.persistence import models  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()
