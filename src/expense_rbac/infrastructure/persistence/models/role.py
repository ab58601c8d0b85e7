"""SQLAlchemy model for the roles table."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expense_rbac.infrastructure.persistence.database import Base


class RoleModel(Base):
    """SQLAlchemy model for the roles table.

    Attributes:
        id: Primary key (UUID string).
        name: Unique role slug (e.g. 'account_officer').
        display_name: Human-readable name as entered.
        description: What the role is for.
        is_system_role: System roles cannot be deleted or renamed.
        created_at: Timestamp when the role was created.
        updated_at: Timestamp when the role was last updated.
    """

    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Role ID (UUID)",
    )
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
        comment="Role slug (e.g., 'administrator', 'account_officer')",
    )
    display_name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Role name as entered by the administrator",
    )
    description: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Description of the role's purpose",
    )
    is_system_role: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    permissions: Mapped[list["RolePermissionModel"]] = relationship(  # noqa: F821
        "RolePermissionModel",
        back_populates="role",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name})>"
