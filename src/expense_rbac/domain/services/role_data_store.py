"""Abstract base class for the persisted role and visibility store.

The services only ever reach persistence through this interface. Any
implementation must raise ``PersistenceError`` when a read or write fails.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from expense_rbac.domain.entities.audit_log import AuditLogEntry
from expense_rbac.domain.entities.feature import FeatureVisibility
from expense_rbac.domain.entities.role import NewRole, Role

VisibilityMatrix = dict[str, dict[str, FeatureVisibility]]


class RoleDataStore(ABC):
    """Storage operations for roles, permission grants and feature visibility."""

    @abstractmethod
    async def list_roles(self) -> list[Role]:
        """Load every role with its permission keys and user count."""
        pass

    @abstractmethod
    async def create_role(self, role: NewRole) -> Role:
        """Persist a role together with its permission grants.

        Args:
            role: Validated, normalized role data.

        Returns:
            The stored role, with its assigned id.
        """
        pass

    @abstractmethod
    async def update_role(self, role_id: str, changes: dict[str, Any]) -> None:
        """Persist a partial update of a role's own columns.

        Args:
            role_id: Role to update.
            changes: Subset of 'name', 'display_name' and 'description'.
        """
        pass

    @abstractmethod
    async def delete_role(self, role_id: str) -> None:
        """Delete a role, its grants and its visibility entries."""
        pass

    @abstractmethod
    async def upsert_role_permissions(self, role_id: str, permissions: list[str]) -> None:
        """Replace a role's permission grants with exactly ``permissions``."""
        pass

    @abstractmethod
    async def get_feature_visibility_matrix(self) -> VisibilityMatrix:
        """Load every visibility entry, keyed by role id then feature id."""
        pass

    @abstractmethod
    async def upsert_feature_visibility(self, entry: FeatureVisibility) -> None:
        """Insert or update one visibility entry keyed by (role_id, feature_id)."""
        pass

    @abstractmethod
    async def bulk_upsert_feature_visibility(self, entries: Iterable[FeatureVisibility]) -> int:
        """Insert or update many visibility entries in one unit.

        Returns:
            Number of entries written.
        """
        pass

    @abstractmethod
    async def list_audit_log(
        self,
        user_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 100,
    ) -> list[AuditLogEntry]:
        """List settings audit log entries, newest first."""
        pass
