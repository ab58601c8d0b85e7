"""SQLAlchemy model for the role_permissions junction table.

Each row grants one permission key from the permission catalog to a role.
"""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expense_rbac.infrastructure.persistence.database import Base


class RolePermissionModel(Base):
    """Permission grant for a role.

    Attributes:
        role_id: Foreign key to roles table.
        permission_key: Key of the granted permission.
    """

    __tablename__ = "role_permissions"

    role_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
        comment="Foreign key to roles table",
    )
    permission_key: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Permission catalog key",
    )

    role: Mapped["RoleModel"] = relationship(  # noqa: F821
        "RoleModel",
        back_populates="permissions",
    )

    def __repr__(self) -> str:
        return f"<RolePermission(role_id={self.role_id}, permission_key={self.permission_key})>"
