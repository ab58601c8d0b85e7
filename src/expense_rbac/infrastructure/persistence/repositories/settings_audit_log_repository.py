"""Settings audit log repository.

Write-only apart from listing: entries are never updated or deleted.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from expense_rbac.infrastructure.persistence.models import SettingsAuditLogModel


class SettingsAuditLogRepository:
    """Repository for settings audit log entries."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, entry: SettingsAuditLogModel) -> SettingsAuditLogModel:
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def list_entries(
        self,
        user_id: str | None = None,
        resource_type: str | None = None,
        action: str | None = None,
        limit: int = 100,
    ) -> list[SettingsAuditLogModel]:
        """List entries, newest first.

        Args:
            user_id: Only entries made by this user.
            resource_type: Only entries for this resource type.
            action: Only entries with this action.
            limit: Maximum number of entries to return.

        Returns:
            Matching audit log entries.
        """
        query = select(SettingsAuditLogModel)
        if user_id is not None:
            query = query.where(SettingsAuditLogModel.user_id == user_id)
        if resource_type is not None:
            query = query.where(SettingsAuditLogModel.resource_type == resource_type)
        if action is not None:
            query = query.where(SettingsAuditLogModel.action == action)
        query = query.order_by(
            SettingsAuditLogModel.created_at.desc(),
            SettingsAuditLogModel.id.desc(),
        ).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())
