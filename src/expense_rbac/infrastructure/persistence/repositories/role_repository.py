"""Role repository for database operations."""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from expense_rbac.infrastructure.persistence.models import RoleModel, UserRoleModel


class RoleRepository:
    """Repository for role database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def list_all(self) -> list[RoleModel]:
        """List every role with its permission grants loaded.

        Returns:
            Roles ordered by creation time, then name.
        """
        result = await self.session.execute(
            select(RoleModel)
            .options(selectinload(RoleModel.permissions))
            .order_by(RoleModel.created_at, RoleModel.name)
        )
        return list(result.scalars().all())

    async def get_by_id(self, role_id: str) -> RoleModel | None:
        """Get a role by ID, with its permission grants loaded.

        Args:
            role_id: Role ID.

        Returns:
            Role model if found, None otherwise.
        """
        result = await self.session.execute(
            select(RoleModel)
            .options(selectinload(RoleModel.permissions))
            .where(RoleModel.id == role_id)
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> RoleModel | None:
        """Get a role by its slug.

        Args:
            name: Role slug (e.g., 'administrator').

        Returns:
            Role model if found, None otherwise.
        """
        result = await self.session.execute(
            select(RoleModel).where(RoleModel.name == name)
        )
        return result.scalar_one_or_none()

    async def create(self, role: RoleModel) -> RoleModel:
        """Create a new role.

        Args:
            role: Role model to create.

        Returns:
            Created role model.
        """
        self.session.add(role)
        await self.session.flush()
        return role

    async def delete(self, role_id: str) -> None:
        """Delete a role row. Grants and visibility rows must be removed first."""
        await self.session.execute(delete(RoleModel).where(RoleModel.id == role_id))

    async def user_counts(self) -> dict[str, int]:
        """Count assigned users per role.

        Returns:
            Mapping of role ID to user count; roles without users are absent.
        """
        result = await self.session.execute(
            select(UserRoleModel.role_id, func.count(UserRoleModel.user_id))
            .group_by(UserRoleModel.role_id)
        )
        return {role_id: count for role_id, count in result.all()}
