"""Feature visibility repository for database operations."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from expense_rbac.infrastructure.persistence.models import FeatureVisibilityModel


class FeatureVisibilityRepository:
    """Repository for per-role feature visibility rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_all(self) -> list[FeatureVisibilityModel]:
        result = await self.session.execute(
            select(FeatureVisibilityModel).order_by(
                FeatureVisibilityModel.role_id,
                FeatureVisibilityModel.feature_id,
            )
        )
        return list(result.scalars().all())

    async def get(self, role_id: str, feature_id: str) -> FeatureVisibilityModel | None:
        result = await self.session.execute(
            select(FeatureVisibilityModel).where(
                FeatureVisibilityModel.role_id == role_id,
                FeatureVisibilityModel.feature_id == feature_id,
            )
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        role_id: str,
        feature_id: str,
        app_id: str,
        is_visible: bool,
        is_enabled: bool,
        configuration: dict,
    ) -> tuple[FeatureVisibilityModel, dict | None]:
        """Insert or update the row keyed by ``(role_id, feature_id)``.

        Returns:
            Tuple of (row, previous column values or None when the row
            was created).
        """
        row = await self.get(role_id, feature_id)
        previous = None
        if row is None:
            row = FeatureVisibilityModel(
                role_id=role_id,
                feature_id=feature_id,
                app_id=app_id,
                is_visible=is_visible,
                is_enabled=is_enabled,
                configuration=dict(configuration),
            )
            self.session.add(row)
        else:
            previous = visibility_values(row)
            row.app_id = app_id
            row.is_visible = is_visible
            row.is_enabled = is_enabled
            row.configuration = dict(configuration)
        await self.session.flush()
        return row, previous

    async def delete_for_role(self, role_id: str) -> None:
        await self.session.execute(
            delete(FeatureVisibilityModel).where(FeatureVisibilityModel.role_id == role_id)
        )


def visibility_values(row: FeatureVisibilityModel) -> dict:
    """Column values of a visibility row, as recorded in the audit log."""
    return {
        "app_id": row.app_id,
        "is_visible": row.is_visible,
        "is_enabled": row.is_enabled,
        "configuration": dict(row.configuration or {}),
    }
