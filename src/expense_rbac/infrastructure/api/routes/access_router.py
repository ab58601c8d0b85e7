"""Access query routes for the current user.

These answer "what may I do" for the session user only, so any
authenticated user may call them.
"""

from fastapi import APIRouter, Query, status

from expense_rbac.infrastructure.api.dependencies import AccessContext, AuthenticatedUser
from expense_rbac.infrastructure.api.schemas import (
    AccessSummaryResponse,
    AppFeaturesResponse,
    FeatureAccessResponse,
    MinimumRoleResponse,
    PermissionCheckResponse,
    ResourceAccessResponse,
    RoleDisplayResponse,
    RoleNavigationResponse,
)

router = APIRouter()


@router.get(
    "/me",
    status_code=status.HTTP_200_OK,
    response_model=AccessSummaryResponse,
)
async def get_my_access(
    current_user: AuthenticatedUser,
    context: AccessContext,
) -> AccessSummaryResponse:
    """Summarize the current user's role, permissions and navigation."""
    access = context.access
    role = access.current_role(current_user)
    display = access.get_role_display(current_user)
    navigation = access.get_role_navigation(current_user)

    return AccessSummaryResponse(
        user_id=current_user.user_id,
        role=access.role_name(current_user),
        is_administrator=access.is_administrator(current_user),
        permissions=sorted(role.permissions) if role else [],
        accessible_apps=access.accessible_apps(current_user),
        display=RoleDisplayResponse(
            label=display.label,
            description=display.description,
            badge_variant=display.badge_variant,
            icon=display.icon,
        ),
        navigation=RoleNavigationResponse(
            primary_apps=list(navigation.primary_apps),
            default_app=navigation.default_app,
            can_manage_users=navigation.can_manage_users,
            can_configure_system=navigation.can_configure_system,
            can_view_all_data=navigation.can_view_all_data,
        ),
    )


@router.get(
    "/permissions/{resource}/{action}",
    status_code=status.HTTP_200_OK,
    response_model=PermissionCheckResponse,
)
async def check_permission(
    resource: str,
    action: str,
    current_user: AuthenticatedUser,
    context: AccessContext,
) -> PermissionCheckResponse:
    return PermissionCheckResponse(
        resource=resource,
        action=action,
        allowed=context.access.has_permission(current_user, resource, action),
    )


@router.get(
    "/apps/{app_id}",
    status_code=status.HTTP_200_OK,
    response_model=AppFeaturesResponse,
)
async def get_app_features(
    app_id: str,
    current_user: AuthenticatedUser,
    context: AccessContext,
) -> AppFeaturesResponse:
    """List the current user's active features within one application module."""
    access = context.access
    return AppFeaturesResponse(
        app_id=app_id,
        can_access=access.can_access_app(current_user, app_id),
        features=access.accessible_features(current_user, app_id),
    )


@router.get(
    "/apps/{app_id}/features/{feature_id}",
    status_code=status.HTTP_200_OK,
    response_model=FeatureAccessResponse,
)
async def check_feature_access(
    app_id: str,
    feature_id: str,
    current_user: AuthenticatedUser,
    context: AccessContext,
) -> FeatureAccessResponse:
    return FeatureAccessResponse(
        app_id=app_id,
        feature_id=feature_id,
        allowed=context.access.can_access_feature(current_user, app_id, feature_id),
    )


@router.get(
    "/resources/{resource}",
    status_code=status.HTTP_200_OK,
    response_model=ResourceAccessResponse,
)
async def check_resource_access(
    resource: str,
    current_user: AuthenticatedUser,
    context: AccessContext,
) -> ResourceAccessResponse:
    """Report view, create, edit and delete access to one resource type."""
    access = context.access
    return ResourceAccessResponse(
        resource=resource,
        can_view=access.can_view(current_user, resource),
        can_create=access.can_create(current_user, resource),
        can_edit=access.can_edit(current_user, resource),
        can_delete=access.can_delete(current_user, resource),
    )


@router.get(
    "/minimum-role",
    status_code=status.HTTP_200_OK,
    response_model=MinimumRoleResponse,
)
async def check_minimum_role(
    current_user: AuthenticatedUser,
    context: AccessContext,
    role: str = Query(..., description="Minimum role in the hierarchy"),
) -> MinimumRoleResponse:
    access = context.access
    return MinimumRoleResponse(
        role=access.role_name(current_user),
        minimum_role=role,
        satisfied=access.has_minimum_role(current_user, role),
    )
