"""API schemas for request/response validation."""

from expense_rbac.infrastructure.api.schemas.access_schemas import (
    AccessSummaryResponse,
    AppFeaturesResponse,
    FeatureAccessResponse,
    MinimumRoleResponse,
    PermissionCheckResponse,
    ResourceAccessResponse,
    RoleDisplayResponse,
    RoleNavigationResponse,
)
from expense_rbac.infrastructure.api.schemas.audit_log_schemas import (
    AuditLogListResponse,
    AuditLogResponse,
)
from expense_rbac.infrastructure.api.schemas.feature_schemas import (
    BulkFailureResponse,
    BulkImpactResponse,
    BulkOperationRequest,
    BulkOperationResponse,
    DependencyCheckResponse,
    DiscardPendingResponse,
    FeatureCatalogResponse,
    FeatureCategoryResponse,
    FeatureChangeRequest,
    FeatureChangeValidationResponse,
    FeaturePair,
    FeatureResponse,
    FeatureUpdateResponse,
    FlushResponse,
    InterfacePreviewResponse,
    NavigationItemResponse,
    PendingChangesResponse,
    RoleFeaturesResponse,
    ToggleOutcomeResponse,
    ToggleResponse,
    VisibilityMatrixResponse,
)
from expense_rbac.infrastructure.api.schemas.role_schemas import (
    CreateRoleRequest,
    PermissionCatalogResponse,
    PermissionResponse,
    RoleListResponse,
    RolePermissionToggleRequest,
    RoleResponse,
    RoleValidationResponse,
    UpdateRoleRequest,
)

__all__ = [
    # Access
    "AccessSummaryResponse",
    "AppFeaturesResponse",
    "FeatureAccessResponse",
    "MinimumRoleResponse",
    "PermissionCheckResponse",
    "ResourceAccessResponse",
    "RoleDisplayResponse",
    "RoleNavigationResponse",
    # Audit log
    "AuditLogListResponse",
    "AuditLogResponse",
    # Features
    "BulkFailureResponse",
    "BulkImpactResponse",
    "BulkOperationRequest",
    "BulkOperationResponse",
    "DependencyCheckResponse",
    "DiscardPendingResponse",
    "FeatureCatalogResponse",
    "FeatureCategoryResponse",
    "FeatureChangeRequest",
    "FeatureChangeValidationResponse",
    "FeaturePair",
    "FeatureResponse",
    "FeatureUpdateResponse",
    "FlushResponse",
    "InterfacePreviewResponse",
    "NavigationItemResponse",
    "PendingChangesResponse",
    "RoleFeaturesResponse",
    "ToggleOutcomeResponse",
    "ToggleResponse",
    "VisibilityMatrixResponse",
    # Roles
    "CreateRoleRequest",
    "PermissionCatalogResponse",
    "PermissionResponse",
    "RoleListResponse",
    "RolePermissionToggleRequest",
    "RoleResponse",
    "RoleValidationResponse",
    "UpdateRoleRequest",
]
