"""Domain services for expense RBAC.

Catalogs, validators and the stateful role and visibility services. They
reach persistence only through the RoleDataStore interface.
"""

from expense_rbac.domain.services.access_control import (
    DELETE_MINIMUM_ROLE,
    RESOURCE_FEATURES,
    RoleBasedAccess,
)
from expense_rbac.domain.services.feature_catalog import (
    DEFAULT_CATEGORIES,
    FeatureDependencyGraph,
    default_feature_graph,
)
from expense_rbac.domain.services.feature_visibility_service import FeatureVisibilityManager
from expense_rbac.domain.services.permission_catalog import (
    DEFAULT_PERMISSIONS,
    PermissionCatalog,
    default_permission_catalog,
)
from expense_rbac.domain.services.role_data_store import RoleDataStore, VisibilityMatrix
from expense_rbac.domain.services.role_service import RoleService
from expense_rbac.domain.services.role_validator import (
    FeatureChangeValidator,
    validate_role,
    validate_role_description,
    validate_role_name,
    validate_role_permissions,
)
from expense_rbac.domain.services.system_roles import (
    ROLE_DISPLAY,
    ROLE_LEVELS,
    SYSTEM_ROLES,
    SystemRoleDefinition,
    get_system_role,
)
from expense_rbac.domain.services.toggle_queue import ToggleQueue

__all__ = [
    "DEFAULT_CATEGORIES",
    "DEFAULT_PERMISSIONS",
    "DELETE_MINIMUM_ROLE",
    "FeatureChangeValidator",
    "FeatureDependencyGraph",
    "FeatureVisibilityManager",
    "PermissionCatalog",
    "RESOURCE_FEATURES",
    "ROLE_DISPLAY",
    "ROLE_LEVELS",
    "RoleBasedAccess",
    "RoleDataStore",
    "RoleService",
    "SYSTEM_ROLES",
    "SystemRoleDefinition",
    "ToggleQueue",
    "VisibilityMatrix",
    "default_feature_graph",
    "default_permission_catalog",
    "get_system_role",
    "validate_role",
    "validate_role_description",
    "validate_role_name",
    "validate_role_permissions",
]
