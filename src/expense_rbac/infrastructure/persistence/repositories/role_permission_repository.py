"""Role permission repository for database operations."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from expense_rbac.infrastructure.persistence.models import RolePermissionModel


class RolePermissionRepository:
    """Repository for the role_permissions junction table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_for_role(self, role_id: str) -> list[str]:
        """Get the permission keys granted to a role, sorted."""
        result = await self.session.execute(
            select(RolePermissionModel.permission_key)
            .where(RolePermissionModel.role_id == role_id)
            .order_by(RolePermissionModel.permission_key)
        )
        return list(result.scalars().all())

    async def replace(self, role_id: str, permission_keys: list[str]) -> None:
        """Replace every grant of a role with exactly ``permission_keys``.

        Args:
            role_id: Role ID.
            permission_keys: Keys to grant; duplicates are ignored.
        """
        await self.delete_for_role(role_id)
        for key in dict.fromkeys(permission_keys):
            self.session.add(RolePermissionModel(role_id=role_id, permission_key=key))
        await self.session.flush()

    async def delete_for_role(self, role_id: str) -> None:
        await self.session.execute(
            delete(RolePermissionModel).where(RolePermissionModel.role_id == role_id)
        )
