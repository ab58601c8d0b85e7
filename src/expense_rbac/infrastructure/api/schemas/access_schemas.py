"""Schemas for the current user's access queries."""

from pydantic import BaseModel


class RoleDisplayResponse(BaseModel):
    label: str
    description: str
    badge_variant: str
    icon: str


class RoleNavigationResponse(BaseModel):
    primary_apps: list[str]
    default_app: str | None = None
    can_manage_users: bool
    can_configure_system: bool
    can_view_all_data: bool


class AccessSummaryResponse(BaseModel):
    """Everything the client needs to shape its interface for the current user.

    Attributes:
        user_id: Authenticated user.
        role: Effective role slug (the default role when the session has none).
        is_administrator: Administrator by role or session flag.
        permissions: Permission keys granted by the role.
        accessible_apps: Application modules with at least one active feature.
        display: Badge and label for the role.
        navigation: Navigation summary for the role.
    """

    user_id: str
    role: str
    is_administrator: bool
    permissions: list[str]
    accessible_apps: list[str]
    display: RoleDisplayResponse
    navigation: RoleNavigationResponse


class PermissionCheckResponse(BaseModel):
    resource: str
    action: str
    allowed: bool


class AppFeaturesResponse(BaseModel):
    app_id: str
    can_access: bool
    features: list[str]


class FeatureAccessResponse(BaseModel):
    app_id: str
    feature_id: str
    allowed: bool


class ResourceAccessResponse(BaseModel):
    """What the current user may do with one resource type."""

    resource: str
    can_view: bool
    can_create: bool
    can_edit: bool
    can_delete: bool


class MinimumRoleResponse(BaseModel):
    role: str
    minimum_role: str
    satisfied: bool
