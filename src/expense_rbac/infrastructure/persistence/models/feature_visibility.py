"""SQLAlchemy model for the feature_visibility table."""

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from expense_rbac.infrastructure.persistence.database import Base


class FeatureVisibilityModel(Base):
    """Visibility of one feature for one role.

    A feature is active for the role when both ``is_visible`` and
    ``is_enabled`` are true. Absence of a row means "not active".

    Attributes:
        role_id: Foreign key to roles table.
        feature_id: Feature catalog id.
        app_id: Application module the feature belongs to.
        is_visible: Whether the feature is shown.
        is_enabled: Whether the feature can be used.
        configuration: Opaque per-feature settings.
        updated_at: Timestamp of the last change.
    """

    __tablename__ = "feature_visibility"

    role_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
        comment="Foreign key to roles table",
    )
    feature_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Feature catalog id",
    )
    app_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Application module owning the feature",
    )
    is_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    configuration: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"<FeatureVisibility(role_id={self.role_id}, feature_id={self.feature_id}, "
            f"visible={self.is_visible}, enabled={self.is_enabled})>"
        )
