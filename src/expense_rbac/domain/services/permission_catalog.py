"""Permission catalog.

The fixed set of permission keys a role can be granted. Entries are never
created or removed at runtime.
"""

from typing import Iterable, Iterator

from expense_rbac.domain.entities.permission import Permission

DEFAULT_PERMISSIONS: tuple[Permission, ...] = (
    Permission(
        key="user_management",
        name="User Management",
        description="Manage user accounts and roles",
        category="admin",
        resource="user",
        action="manage",
    ),
    Permission(
        key="system_config",
        name="System Configuration",
        description="Configure system settings",
        category="admin",
        resource="system",
        action="manage",
    ),
    Permission(
        key="expense_read",
        name="Expense Read",
        description="View expense data",
        category="expense",
        resource="expense",
        action="read",
    ),
    Permission(
        key="expense_write",
        name="Expense Write",
        description="Create and edit expenses",
        category="expense",
        resource="expense",
        action="write",
    ),
    Permission(
        key="report_access",
        name="Report Access",
        description="Access financial reports",
        category="reporting",
        resource="report",
        action="read",
    ),
    Permission(
        key="audit_logs",
        name="Audit Logs",
        description="View system audit logs",
        category="admin",
        resource="audit_log",
        action="read",
    ),
    Permission(
        key="full_access",
        name="Full Access",
        description="Every action on every resource",
        category="admin",
        resource="*",
        action="manage",
    ),
)


class PermissionCatalog:
    """Lookup over an immutable set of permissions."""

    def __init__(self, permissions: Iterable[Permission] = DEFAULT_PERMISSIONS) -> None:
        self._permissions: dict[str, Permission] = {}
        for permission in permissions:
            if permission.key in self._permissions:
                raise ValueError(f"Duplicate permission key: {permission.key}")
            self._permissions[permission.key] = permission

    def __contains__(self, key: object) -> bool:
        return key in self._permissions

    def __iter__(self) -> Iterator[Permission]:
        return iter(self._permissions.values())

    def __len__(self) -> int:
        return len(self._permissions)

    def get(self, key: str) -> Permission | None:
        return self._permissions.get(key)

    def keys(self) -> list[str]:
        return list(self._permissions)

    def unknown_keys(self, keys: Iterable[str]) -> list[str]:
        """Keys not present in the catalog, in input order."""
        return [key for key in keys if key not in self._permissions]

    def by_category(self) -> dict[str, list[Permission]]:
        """Group permissions by category, preserving catalog order."""
        grouped: dict[str, list[Permission]] = {}
        for permission in self._permissions.values():
            grouped.setdefault(permission.category, []).append(permission)
        return grouped

    def allows(self, granted_keys: Iterable[str], resource: str, action: str) -> bool:
        """Check whether any granted key allows ``action`` on ``resource``.

        Keys missing from the catalog grant nothing.
        """
        for key in granted_keys:
            permission = self._permissions.get(key)
            if permission is not None and permission.allows(resource, action):
                return True
        return False


default_permission_catalog = PermissionCatalog()
