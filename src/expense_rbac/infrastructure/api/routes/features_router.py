"""Feature visibility API routes.

Read access to the feature catalog is open to every authenticated user;
everything that inspects or changes another role's visibility requires an
administrator.
"""

from fastapi import APIRouter, status

from expense_rbac.core.logging import get_logger
from expense_rbac.domain.entities.feature import BulkOperation
from expense_rbac.domain.exceptions import RoleNotFoundError
from expense_rbac.infrastructure.api.access_context import AccessControlContext
from expense_rbac.infrastructure.api.dependencies import (
    AccessContext,
    AdminUser,
    AuthenticatedUser,
)
from expense_rbac.infrastructure.api.schemas import (
    BulkImpactResponse,
    BulkOperationRequest,
    BulkOperationResponse,
    DependencyCheckResponse,
    DiscardPendingResponse,
    FeatureCatalogResponse,
    FeatureCategoryResponse,
    FeatureChangeRequest,
    FeatureChangeValidationResponse,
    FeatureUpdateResponse,
    FlushResponse,
    InterfacePreviewResponse,
    PendingChangesResponse,
    RoleFeaturesResponse,
    ToggleOutcomeResponse,
    ToggleResponse,
    VisibilityMatrixResponse,
)

logger = get_logger(__name__)

router = APIRouter()


async def _require_role(context: AccessControlContext, role_id: str) -> None:
    await context.roles.ensure_loaded()
    if context.roles.get_role(role_id) is None:
        raise RoleNotFoundError(role_id)


def _to_operation(request: BulkOperationRequest) -> BulkOperation:
    return BulkOperation(
        role_ids=request.role_ids,
        category_id=request.category_id,
        action=request.action,
    )


# =============================================================================
# Catalog
# =============================================================================


@router.get(
    "/catalog",
    status_code=status.HTTP_200_OK,
    response_model=FeatureCatalogResponse,
)
async def get_feature_catalog(
    current_user: AuthenticatedUser,
    context: AccessContext,
) -> FeatureCatalogResponse:
    """Get every feature category and its features in catalog order."""
    return FeatureCatalogResponse(
        categories=[FeatureCategoryResponse.from_category(c) for c in context.graph.categories]
    )


@router.get(
    "/catalog/check",
    status_code=status.HTTP_200_OK,
    response_model=DependencyCheckResponse,
    responses={403: {"description": "Administrator access required"}},
)
async def check_feature_catalog(
    current_user: AdminUser,
    context: AccessContext,
) -> DependencyCheckResponse:
    """Report dependency cycles and inconsistent dependency declarations."""
    return DependencyCheckResponse.from_check(context.graph.validate_feature_dependencies())


# =============================================================================
# Visibility state
# =============================================================================


@router.get(
    "/matrix",
    status_code=status.HTTP_200_OK,
    response_model=VisibilityMatrixResponse,
    responses={403: {"description": "Administrator access required"}},
)
async def get_visibility_matrix(
    current_user: AdminUser,
    context: AccessContext,
) -> VisibilityMatrixResponse:
    """Get the active features of every role."""
    graph = context.graph
    return VisibilityMatrixResponse(
        roles={
            role_id: graph.in_catalog_order(active)
            for role_id, active in context.visibility.matrix().items()
        }
    )


@router.get(
    "/roles/{role_id}",
    status_code=status.HTTP_200_OK,
    response_model=RoleFeaturesResponse,
    responses={
        403: {"description": "Administrator access required"},
        404: {"description": "Role not found"},
    },
)
async def get_role_features(
    role_id: str,
    current_user: AdminUser,
    context: AccessContext,
) -> RoleFeaturesResponse:
    """Get one role's active features and pending changes."""
    await _require_role(context, role_id)
    visibility = context.visibility
    return RoleFeaturesResponse(
        role_id=role_id,
        active_features=context.graph.in_catalog_order(visibility.active_features(role_id)),
        pending_changes=visibility.pending_changes(role_id),
    )


@router.post(
    "/roles/{role_id}/{feature_id}/validate",
    status_code=status.HTTP_200_OK,
    response_model=FeatureChangeValidationResponse,
    responses={403: {"description": "Administrator access required"}},
)
async def validate_feature_change(
    role_id: str,
    feature_id: str,
    change: FeatureChangeRequest,
    current_user: AdminUser,
    context: AccessContext,
) -> FeatureChangeValidationResponse:
    """Check a feature change without applying it."""
    result = await context.visibility.validate_feature_change(role_id, feature_id, change.enabled)
    return FeatureChangeValidationResponse.from_result(result)


@router.put(
    "/roles/{role_id}/{feature_id}",
    status_code=status.HTTP_200_OK,
    response_model=FeatureUpdateResponse,
    responses={
        403: {"description": "Administrator access required"},
        404: {"description": "Role not found"},
        422: {"description": "Change rejected by validation"},
        502: {"description": "Change could not be saved"},
    },
)
async def set_role_feature(
    role_id: str,
    feature_id: str,
    change: FeatureChangeRequest,
    current_user: AdminUser,
    context: AccessContext,
) -> FeatureUpdateResponse:
    """Activate or deactivate a feature for a role.

    Deactivating a feature also deactivates its active dependents.
    """
    result = await context.visibility.update_role_features(role_id, feature_id, change.enabled)

    logger.info(
        "Role feature changed",
        role_id=role_id,
        feature_id=feature_id,
        enabled=change.enabled,
        changed_by=current_user.user_id,
    )

    return FeatureUpdateResponse.from_result(result)


@router.post(
    "/roles/{role_id}/{feature_id}/toggle",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ToggleResponse,
    responses={
        403: {"description": "Administrator access required"},
        404: {"description": "Role not found"},
        422: {"description": "Feature not found"},
    },
)
async def toggle_role_feature(
    role_id: str,
    feature_id: str,
    current_user: AdminUser,
    context: AccessContext,
) -> ToggleResponse:
    """Queue a toggle; toggles are written once the quiet period elapses."""
    await _require_role(context, role_id)
    enabled = context.visibility.toggle_feature(role_id, feature_id)

    logger.debug(
        "Feature toggle queued",
        role_id=role_id,
        feature_id=feature_id,
        enabled=enabled,
        requested_by=current_user.user_id,
    )

    return ToggleResponse(
        role_id=role_id,
        feature_id=feature_id,
        enabled=enabled,
        queued=len(context.visibility.queue),
    )


@router.post(
    "/flush",
    status_code=status.HTTP_200_OK,
    response_model=FlushResponse,
    responses={403: {"description": "Administrator access required"}},
)
async def flush_toggles(
    current_user: AdminUser,
    context: AccessContext,
) -> FlushResponse:
    """Write every queued toggle now."""
    outcomes = await context.visibility.flush()
    return FlushResponse(outcomes=[ToggleOutcomeResponse.from_outcome(o) for o in outcomes])


# =============================================================================
# Bulk operations
# =============================================================================


@router.post(
    "/bulk",
    status_code=status.HTTP_200_OK,
    response_model=BulkOperationResponse,
    responses={
        403: {"description": "Administrator access required"},
        404: {"description": "Category not found"},
        422: {"description": "Operation rejected"},
    },
)
async def bulk_update_features(
    request: BulkOperationRequest,
    current_user: AdminUser,
    context: AccessContext,
) -> BulkOperationResponse:
    """Enable or disable a whole category for several roles.

    Each role/feature pair is applied independently; failures are listed
    in the response rather than aborting the operation.
    """
    result = await context.visibility.bulk_update_features(_to_operation(request))

    logger.info(
        "Bulk feature operation requested",
        category_id=request.category_id,
        action=request.action,
        role_count=len(request.role_ids),
        requested_by=current_user.user_id,
    )

    return BulkOperationResponse.from_result(result)


@router.post(
    "/bulk/impact",
    status_code=status.HTTP_200_OK,
    response_model=BulkImpactResponse,
    responses={
        403: {"description": "Administrator access required"},
        404: {"description": "Category not found"},
    },
)
async def calculate_bulk_impact(
    request: BulkOperationRequest,
    current_user: AdminUser,
    context: AccessContext,
) -> BulkImpactResponse:
    """Project the users and features a bulk operation would touch."""
    impact = await context.visibility.calculate_bulk_operation_impact(_to_operation(request))
    return BulkImpactResponse.from_impact(impact)


# =============================================================================
# Pending changes and preview
# =============================================================================


@router.get(
    "/roles/{role_id}/preview",
    status_code=status.HTTP_200_OK,
    response_model=InterfacePreviewResponse,
    responses={
        403: {"description": "Administrator access required"},
        404: {"description": "Role not found"},
    },
)
async def preview_role_interface(
    role_id: str,
    current_user: AdminUser,
    context: AccessContext,
) -> InterfacePreviewResponse:
    """Preview the role's interface with its pending changes applied."""
    await _require_role(context, role_id)
    return InterfacePreviewResponse.from_preview(
        context.visibility.preview_role_interface(role_id)
    )


@router.get(
    "/roles/{role_id}/pending",
    status_code=status.HTTP_200_OK,
    response_model=PendingChangesResponse,
    responses={
        403: {"description": "Administrator access required"},
        404: {"description": "Role not found"},
    },
)
async def get_pending_changes(
    role_id: str,
    current_user: AdminUser,
    context: AccessContext,
) -> PendingChangesResponse:
    await _require_role(context, role_id)
    return PendingChangesResponse(
        role_id=role_id,
        changes=context.visibility.pending_changes(role_id),
    )


@router.put(
    "/roles/{role_id}/pending/{feature_id}",
    status_code=status.HTTP_200_OK,
    response_model=PendingChangesResponse,
    responses={
        403: {"description": "Administrator access required"},
        404: {"description": "Role not found"},
        422: {"description": "Feature not found"},
    },
)
async def add_pending_change(
    role_id: str,
    feature_id: str,
    change: FeatureChangeRequest,
    current_user: AdminUser,
    context: AccessContext,
) -> PendingChangesResponse:
    """Record a speculative change; nothing is saved until it is committed."""
    await _require_role(context, role_id)
    context.visibility.add_pending_change(role_id, feature_id, change.enabled)
    return PendingChangesResponse(
        role_id=role_id,
        changes=context.visibility.pending_changes(role_id),
    )


@router.delete(
    "/roles/{role_id}/pending",
    status_code=status.HTTP_200_OK,
    response_model=DiscardPendingResponse,
    responses={403: {"description": "Administrator access required"}},
)
async def discard_pending_changes(
    role_id: str,
    current_user: AdminUser,
    context: AccessContext,
) -> DiscardPendingResponse:
    discarded = context.visibility.discard_pending_changes(role_id)
    return DiscardPendingResponse(role_id=role_id, discarded=discarded)


@router.post(
    "/roles/{role_id}/pending/commit",
    status_code=status.HTTP_200_OK,
    response_model=BulkOperationResponse,
    responses={
        403: {"description": "Administrator access required"},
        404: {"description": "Role not found"},
    },
)
async def commit_pending_changes(
    role_id: str,
    current_user: AdminUser,
    context: AccessContext,
) -> BulkOperationResponse:
    """Apply and clear a role's pending changes."""
    await _require_role(context, role_id)
    result = await context.visibility.commit_pending_changes(role_id)

    logger.info(
        "Pending feature changes committed",
        role_id=role_id,
        committed_by=current_user.user_id,
    )

    return BulkOperationResponse.from_result(result)
