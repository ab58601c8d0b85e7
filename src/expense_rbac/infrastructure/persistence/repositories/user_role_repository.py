"""User role assignment repository for database operations."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from expense_rbac.infrastructure.persistence.models import UserRoleModel


class UserRoleRepository:
    """Repository for user role assignments."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, user_id: str) -> UserRoleModel | None:
        result = await self.session.execute(
            select(UserRoleModel).where(UserRoleModel.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def assign(self, user_id: str, role_id: str) -> UserRoleModel:
        """Assign a role to a user, replacing any previous assignment.

        Args:
            user_id: User ID.
            role_id: Role ID.

        Returns:
            The assignment row.
        """
        assignment = await self.get(user_id)
        if assignment is None:
            assignment = UserRoleModel(user_id=user_id, role_id=role_id)
            self.session.add(assignment)
        else:
            assignment.role_id = role_id
        await self.session.flush()
        return assignment

    async def count_by_role(self, role_id: str) -> int:
        result = await self.session.execute(
            select(func.count(UserRoleModel.user_id)).where(UserRoleModel.role_id == role_id)
        )
        return result.scalar_one() or 0
