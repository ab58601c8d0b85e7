"""Domain entities.

Plain dataclasses with no dependencies on infrastructure or frameworks.
"""

from expense_rbac.domain.entities.access import AccessSubject, RoleDisplay, RoleNavigation
from expense_rbac.domain.entities.audit_log import AuditLogEntry
from expense_rbac.domain.entities.feature import (
    BulkAction,
    BulkOperation,
    Feature,
    FeatureCategory,
    FeatureVisibility,
)
from expense_rbac.domain.entities.permission import (
    MANAGE_ACTION,
    WILDCARD_RESOURCE,
    Permission,
)
from expense_rbac.domain.entities.role import NewRole, Role, RoleInput, RoleUpdate, role_slug
from expense_rbac.domain.entities.validation import (
    DependencyCheck,
    FeatureChangeAccepted,
    FeatureChangeRejected,
    FeatureChangeResult,
    Invalid,
    Valid,
    ValidationResult,
)
from expense_rbac.domain.entities.visibility_results import (
    BulkItemFailure,
    BulkOperationImpact,
    BulkOperationResult,
    FeatureUpdateResult,
    InterfacePreview,
    NavigationItem,
    QueuedToggle,
    ToggleOutcome,
)

__all__ = [
    "AccessSubject",
    "AuditLogEntry",
    "BulkAction",
    "BulkItemFailure",
    "BulkOperation",
    "BulkOperationImpact",
    "BulkOperationResult",
    "DependencyCheck",
    "Feature",
    "FeatureCategory",
    "FeatureChangeAccepted",
    "FeatureChangeRejected",
    "FeatureChangeResult",
    "FeatureUpdateResult",
    "FeatureVisibility",
    "InterfacePreview",
    "Invalid",
    "MANAGE_ACTION",
    "NavigationItem",
    "NewRole",
    "Permission",
    "QueuedToggle",
    "Role",
    "RoleDisplay",
    "RoleNavigation",
    "RoleInput",
    "RoleUpdate",
    "ToggleOutcome",
    "Valid",
    "ValidationResult",
    "WILDCARD_RESOURCE",
    "role_slug",
]
