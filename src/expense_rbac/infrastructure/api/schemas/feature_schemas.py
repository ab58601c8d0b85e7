"""Feature visibility API schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from expense_rbac.domain.entities.feature import Feature, FeatureCategory
from expense_rbac.domain.entities.validation import DependencyCheck, FeatureChangeResult
from expense_rbac.domain.entities.visibility_results import (
    BulkOperationImpact,
    BulkOperationResult,
    FeatureUpdateResult,
    InterfacePreview,
    ToggleOutcome,
)

# =============================================================================
# Catalog
# =============================================================================


class FeatureResponse(BaseModel):
    """A feature catalog entry."""

    id: str
    name: str
    description: str
    app_id: str
    dependencies: list[str]
    dependents: list[str]
    is_core: bool
    admin_only: bool

    @classmethod
    def from_feature(cls, feature: Feature) -> "FeatureResponse":
        return cls(
            id=feature.id,
            name=feature.name,
            description=feature.description,
            app_id=feature.app_id,
            dependencies=list(feature.dependencies),
            dependents=list(feature.dependents),
            is_core=feature.is_core,
            admin_only=feature.admin_only,
        )


class FeatureCategoryResponse(BaseModel):
    """A feature category with its features in catalog order."""

    id: str
    name: str
    description: str
    features: list[FeatureResponse]

    @classmethod
    def from_category(cls, category: FeatureCategory) -> "FeatureCategoryResponse":
        return cls(
            id=category.id,
            name=category.name,
            description=category.description,
            features=[FeatureResponse.from_feature(f) for f in category.features],
        )


class FeatureCatalogResponse(BaseModel):
    categories: list[FeatureCategoryResponse]


class DependencyCheckResponse(BaseModel):
    """Catalog integrity report."""

    is_consistent: bool
    has_circular_dependencies: bool
    cycles: list[list[str]]
    inconsistencies: list[str]

    @classmethod
    def from_check(cls, check: DependencyCheck) -> "DependencyCheckResponse":
        return cls(
            is_consistent=check.is_consistent,
            has_circular_dependencies=check.has_circular_dependencies,
            cycles=[list(cycle) for cycle in check.cycles],
            inconsistencies=list(check.inconsistencies),
        )


# =============================================================================
# Visibility state
# =============================================================================


class VisibilityMatrixResponse(BaseModel):
    """Active feature ids per role id."""

    roles: dict[str, list[str]]


class RoleFeaturesResponse(BaseModel):
    """Active features of one role and its pending (uncommitted) changes."""

    role_id: str
    active_features: list[str]
    pending_changes: dict[str, bool] = Field(default_factory=dict)


class FeatureChangeRequest(BaseModel):
    """Target state for a single feature."""

    enabled: bool


class FeatureChangeValidationResponse(BaseModel):
    """Validation outcome for a proposed feature change."""

    is_valid: bool
    errors: list[str]
    warnings: list[str]
    requires_confirmation: bool

    @classmethod
    def from_result(cls, result: FeatureChangeResult) -> "FeatureChangeValidationResponse":
        return cls(
            is_valid=result.is_valid,
            errors=list(result.errors),
            warnings=list(result.warnings),
            requires_confirmation=result.requires_confirmation,
        )


class FeatureUpdateResponse(BaseModel):
    """Outcome of a committed feature change."""

    success: bool
    affected_users: int
    warnings: list[str]
    cascaded: list[str]

    @classmethod
    def from_result(cls, result: FeatureUpdateResult) -> "FeatureUpdateResponse":
        return cls(
            success=result.success,
            affected_users=result.affected_users,
            warnings=list(result.warnings),
            cascaded=list(result.cascaded),
        )


class ToggleResponse(BaseModel):
    """A toggle accepted into the debounce queue.

    Attributes:
        enabled: Target state the toggle queued.
        queued: Toggles waiting for the quiet period to elapse.
    """

    role_id: str
    feature_id: str
    enabled: bool
    queued: int


class ToggleOutcomeResponse(BaseModel):
    role_id: str
    feature_id: str
    enabled: bool
    applied: bool
    error: str | None = None

    @classmethod
    def from_outcome(cls, outcome: ToggleOutcome) -> "ToggleOutcomeResponse":
        return cls(
            role_id=outcome.role_id,
            feature_id=outcome.feature_id,
            enabled=outcome.enabled,
            applied=outcome.applied,
            error=outcome.error,
        )


class FlushResponse(BaseModel):
    outcomes: list[ToggleOutcomeResponse]


# =============================================================================
# Bulk operations
# =============================================================================


class BulkOperationRequest(BaseModel):
    """Enable or disable every feature of a category for several roles."""

    role_ids: list[str]
    category_id: str
    action: Literal["enable", "disable"] = "enable"


class FeaturePair(BaseModel):
    role_id: str
    feature_id: str


class BulkFailureResponse(BaseModel):
    role_id: str
    feature_id: str
    error: str


class BulkOperationResponse(BaseModel):
    """Per-item outcome of a bulk operation or pending-change commit."""

    success: bool
    succeeded: list[FeaturePair]
    skipped: list[FeaturePair]
    failed: list[BulkFailureResponse]
    warnings: list[str]

    @classmethod
    def from_result(cls, result: BulkOperationResult) -> "BulkOperationResponse":
        return cls(
            success=result.success,
            succeeded=[FeaturePair(role_id=r, feature_id=f) for r, f in result.succeeded],
            skipped=[FeaturePair(role_id=r, feature_id=f) for r, f in result.skipped],
            failed=[
                BulkFailureResponse(role_id=f.role_id, feature_id=f.feature_id, error=f.error)
                for f in result.failed
            ],
            warnings=list(result.warnings),
        )


class BulkImpactResponse(BaseModel):
    affected_users: int
    features_changed: int
    warnings: list[str]

    @classmethod
    def from_impact(cls, impact: BulkOperationImpact) -> "BulkImpactResponse":
        return cls(
            affected_users=impact.affected_users,
            features_changed=impact.features_changed,
            warnings=list(impact.warnings),
        )


# =============================================================================
# Pending changes and preview
# =============================================================================


class PendingChangesResponse(BaseModel):
    role_id: str
    changes: dict[str, bool]


class DiscardPendingResponse(BaseModel):
    role_id: str
    discarded: int


class NavigationItemResponse(BaseModel):
    id: str
    name: str


class InterfacePreviewResponse(BaseModel):
    """A role's interface with its pending changes applied."""

    role_id: str
    available_features: list[str]
    navigation_structure: dict[str, list[NavigationItemResponse]]
    accessible_apps: list[str]
    feature_count: int
    accessibility_level: Literal["full", "standard", "limited"]
    warnings: list[str]

    @classmethod
    def from_preview(cls, preview: InterfacePreview) -> "InterfacePreviewResponse":
        return cls(
            role_id=preview.role_id,
            available_features=list(preview.available_features),
            navigation_structure={
                category_id: [NavigationItemResponse(id=i.id, name=i.name) for i in items]
                for category_id, items in preview.navigation_structure.items()
            },
            accessible_apps=list(preview.accessible_apps),
            feature_count=preview.feature_count,
            accessibility_level=preview.accessibility_level,
            warnings=list(preview.warnings),
        )
