"""SQLAlchemy model for the user_roles table.

Maps each user to the single role they hold. Users themselves live in the
authentication service; only their id is stored here.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from expense_rbac.infrastructure.persistence.database import Base


class UserRoleModel(Base):
    """Role assignment for one user.

    Attributes:
        user_id: Identifier of the user in the authentication service.
        role_id: Foreign key to roles table.
        assigned_at: Timestamp when the role was assigned.
    """

    __tablename__ = "user_roles"

    user_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="User ID from the authentication service",
    )
    role_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Foreign key to roles table",
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<UserRole(user_id={self.user_id}, role_id={self.role_id})>"
