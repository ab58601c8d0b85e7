"""SQLAlchemy models for the RBAC tables.

All models inherit from the Base class defined in database.py and are
created on application startup.
"""

from expense_rbac.infrastructure.persistence.models.feature_visibility import (
    FeatureVisibilityModel,
)
from expense_rbac.infrastructure.persistence.models.role import RoleModel
from expense_rbac.infrastructure.persistence.models.role_permission import RolePermissionModel
from expense_rbac.infrastructure.persistence.models.settings_audit_log import (
    SettingsAuditLogModel,
)
from expense_rbac.infrastructure.persistence.models.user_role import UserRoleModel

__all__ = [
    "FeatureVisibilityModel",
    "RoleModel",
    "RolePermissionModel",
    "SettingsAuditLogModel",
    "UserRoleModel",
]
