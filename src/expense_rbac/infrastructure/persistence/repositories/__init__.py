"""Repositories for database access."""

from expense_rbac.infrastructure.persistence.repositories.feature_visibility_repository import (
    FeatureVisibilityRepository,
)
from expense_rbac.infrastructure.persistence.repositories.role_permission_repository import (
    RolePermissionRepository,
)
from expense_rbac.infrastructure.persistence.repositories.role_repository import RoleRepository
from expense_rbac.infrastructure.persistence.repositories.settings_audit_log_repository import (
    SettingsAuditLogRepository,
)
from expense_rbac.infrastructure.persistence.repositories.user_role_repository import (
    UserRoleRepository,
)

__all__ = [
    "FeatureVisibilityRepository",
    "RolePermissionRepository",
    "RoleRepository",
    "SettingsAuditLogRepository",
    "UserRoleRepository",
]
