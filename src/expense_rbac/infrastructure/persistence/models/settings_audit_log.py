"""SQLAlchemy model for the settings_audit_log table.

Write-once record of every change made to roles, permission grants and
feature visibility.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from expense_rbac.infrastructure.persistence.database import Base


class SettingsAuditLogModel(Base):
    """SQLAlchemy model for the settings_audit_log table.

    Attributes:
        id: Primary key (UUID string).
        user_id: Acting user, NULL for system changes.
        action: 'create', 'update' or 'delete'.
        resource_type: 'role', 'role_permissions' or 'feature_visibility'.
        resource_id: Identifier of the changed row.
        old_values: Row values before the change.
        new_values: Row values after the change.
        created_at: Timestamp when the change was recorded (UTC).
    """

    __tablename__ = "settings_audit_log"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Audit entry ID (UUID)",
    )
    user_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        index=True,
        comment="Acting user ID",
    )
    action: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Change type: create, update, delete",
    )
    resource_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Kind of resource changed",
    )
    resource_id: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
        comment="Identifier of the changed resource",
    )
    old_values: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    new_values: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        index=True,
    )

    __table_args__ = (
        Index("ix_settings_audit_log_resource", "resource_type", "resource_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<SettingsAuditLog(id={self.id}, action={self.action}, "
            f"resource_type={self.resource_type}, resource_id={self.resource_id})>"
        )
