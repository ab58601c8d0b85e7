"""SQLAlchemy implementation of the RoleDataStore interface.

Each logical operation runs in its own session and commits once, so a role
and its permission grants, or a batch of visibility entries, are written
as a single unit. Every write also records a settings audit log entry
attributed to the acting user bound in ``expense_rbac.core.context``.
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Iterable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from expense_rbac.core.context import get_current_actor
from expense_rbac.core.logging import get_logger
from expense_rbac.domain.entities.audit_log import AuditLogEntry
from expense_rbac.domain.entities.feature import FeatureVisibility
from expense_rbac.domain.entities.role import NewRole, Role
from expense_rbac.domain.exceptions import (
    DuplicateRoleError,
    PersistenceError,
    RoleDeletionError,
    RoleNotFoundError,
)
from expense_rbac.domain.services.role_data_store import RoleDataStore, VisibilityMatrix
from expense_rbac.infrastructure.persistence.models import RoleModel, SettingsAuditLogModel
from expense_rbac.infrastructure.persistence.repositories import (
    FeatureVisibilityRepository,
    RolePermissionRepository,
    RoleRepository,
    SettingsAuditLogRepository,
    UserRoleRepository,
)
from expense_rbac.infrastructure.persistence.repositories.feature_visibility_repository import (
    visibility_values,
)

logger = get_logger(__name__)

ROLE_COLUMNS = ("name", "display_name", "description")


def _role_values(model: RoleModel, permissions: Iterable[str]) -> dict[str, Any]:
    return {
        "name": model.name,
        "display_name": model.display_name,
        "description": model.description,
        "is_system_role": model.is_system_role,
        "permissions": sorted(permissions),
    }


class SqlAlchemyRoleDataStore(RoleDataStore):
    """Role store backed by the tables in ``persistence.models``."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: Factory used to open one session per operation.
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(
        self,
        operation: str,
        unique_name: bool = False,
    ) -> AsyncGenerator[AsyncSession, None]:
        """Open a session, commit on success and translate database errors.

        Args:
            operation: Short description used in error messages and logs.
            unique_name: Report integrity errors as a duplicate role name.
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if unique_name:
                    raise DuplicateRoleError() from e
                logger.error("Role store integrity error", operation=operation, error=str(e))
                raise PersistenceError(f"Failed to {operation}: {e.orig}") from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Role store operation failed", operation=operation, error=str(e))
                raise PersistenceError(f"Failed to {operation}: {e}") from e

    async def _audit(
        self,
        session: AsyncSession,
        action: str,
        resource_type: str,
        resource_id: str,
        old_values: Optional[dict[str, Any]],
        new_values: Optional[dict[str, Any]],
    ) -> None:
        await SettingsAuditLogRepository(session).create(
            SettingsAuditLogModel(
                id=str(uuid.uuid4()),
                user_id=get_current_actor(),
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                old_values=old_values,
                new_values=new_values,
                created_at=datetime.now(timezone.utc),
            )
        )

    async def _require_role(self, session: AsyncSession, role_id: str) -> RoleModel:
        model = await RoleRepository(session).get_by_id(role_id)
        if model is None:
            raise RoleNotFoundError(role_id)
        return model

    async def list_roles(self) -> list[Role]:
        async with self._transaction("list roles") as session:
            repo = RoleRepository(session)
            models = await repo.list_all()
            counts = await repo.user_counts()
            return [
                Role(
                    id=model.id,
                    name=model.name,
                    display_name=model.display_name,
                    description=model.description,
                    permissions=frozenset(p.permission_key for p in model.permissions),
                    is_system_role=model.is_system_role,
                    user_count=counts.get(model.id, 0),
                )
                for model in models
            ]

    async def create_role(self, role: NewRole) -> Role:
        async with self._transaction("create role", unique_name=True) as session:
            model = RoleModel(
                id=str(uuid.uuid4()),
                name=role.name,
                display_name=role.display_name,
                description=role.description,
                is_system_role=role.is_system_role,
            )
            await RoleRepository(session).create(model)
            await RolePermissionRepository(session).replace(model.id, role.permissions)
            await self._audit(
                session,
                "create",
                "role",
                model.id,
                None,
                _role_values(model, role.permissions),
            )

        logger.debug("Role stored", role_id=model.id, role_name=model.name)
        return Role(
            id=model.id,
            name=model.name,
            display_name=model.display_name,
            description=model.description,
            permissions=frozenset(role.permissions),
            is_system_role=model.is_system_role,
            user_count=0,
        )

    async def update_role(self, role_id: str, changes: dict[str, Any]) -> None:
        unknown = set(changes) - set(ROLE_COLUMNS)
        if unknown:
            raise ValueError(f"Unsupported role fields: {', '.join(sorted(unknown))}")

        async with self._transaction("update role", unique_name="name" in changes) as session:
            model = await self._require_role(session, role_id)
            old_values = {field: getattr(model, field) for field in changes}
            for field, value in changes.items():
                setattr(model, field, value)
            await session.flush()
            await self._audit(session, "update", "role", role_id, old_values, dict(changes))

    async def delete_role(self, role_id: str) -> None:
        async with self._transaction("delete role") as session:
            model = await self._require_role(session, role_id)

            assigned = await UserRoleRepository(session).count_by_role(role_id)
            if assigned:
                raise RoleDeletionError(f"Cannot delete role with {assigned} assigned users")

            permission_repo = RolePermissionRepository(session)
            old_values = _role_values(model, await permission_repo.list_for_role(role_id))

            await FeatureVisibilityRepository(session).delete_for_role(role_id)
            await permission_repo.delete_for_role(role_id)
            await RoleRepository(session).delete(role_id)
            await self._audit(session, "delete", "role", role_id, old_values, None)

    async def upsert_role_permissions(self, role_id: str, permissions: list[str]) -> None:
        async with self._transaction("update role permissions") as session:
            await self._require_role(session, role_id)
            repo = RolePermissionRepository(session)
            previous = await repo.list_for_role(role_id)
            await repo.replace(role_id, permissions)
            await self._audit(
                session,
                "update",
                "role_permissions",
                role_id,
                {"permissions": previous},
                {"permissions": sorted(set(permissions))},
            )

    async def get_feature_visibility_matrix(self) -> VisibilityMatrix:
        async with self._transaction("load feature visibility") as session:
            rows = await FeatureVisibilityRepository(session).list_all()

        matrix: VisibilityMatrix = {}
        for row in rows:
            matrix.setdefault(row.role_id, {})[row.feature_id] = FeatureVisibility(
                role_id=row.role_id,
                feature_id=row.feature_id,
                app_id=row.app_id,
                is_visible=row.is_visible,
                is_enabled=row.is_enabled,
                configuration=dict(row.configuration or {}),
            )
        return matrix

    async def _write_visibility(self, session: AsyncSession, entry: FeatureVisibility) -> None:
        row, previous = await FeatureVisibilityRepository(session).upsert(
            role_id=entry.role_id,
            feature_id=entry.feature_id,
            app_id=entry.app_id,
            is_visible=entry.is_visible,
            is_enabled=entry.is_enabled,
            configuration=entry.configuration,
        )
        await self._audit(
            session,
            "create" if previous is None else "update",
            "feature_visibility",
            f"{entry.role_id}:{entry.feature_id}",
            previous,
            visibility_values(row),
        )

    async def upsert_feature_visibility(self, entry: FeatureVisibility) -> None:
        async with self._transaction("update feature visibility") as session:
            await self._require_role(session, entry.role_id)
            await self._write_visibility(session, entry)

    async def bulk_upsert_feature_visibility(self, entries: Iterable[FeatureVisibility]) -> int:
        entries = list(entries)
        if not entries:
            return 0

        async with self._transaction("bulk update feature visibility") as session:
            for role_id in dict.fromkeys(entry.role_id for entry in entries):
                await self._require_role(session, role_id)
            for entry in entries:
                await self._write_visibility(session, entry)

        logger.debug("Feature visibility entries stored", count=len(entries))
        return len(entries)

    async def list_audit_log(
        self,
        user_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 100,
    ) -> list[AuditLogEntry]:
        async with self._transaction("list audit log") as session:
            rows = await SettingsAuditLogRepository(session).list_entries(
                user_id=user_id,
                resource_type=resource_type,
                action=action,
                limit=limit,
            )
            return [
                AuditLogEntry(
                    id=row.id,
                    user_id=row.user_id,
                    action=row.action,
                    resource_type=row.resource_type,
                    resource_id=row.resource_id,
                    old_values=row.old_values,
                    new_values=row.new_values,
                    timestamp=row.created_at,
                )
                for row in rows
            ]
