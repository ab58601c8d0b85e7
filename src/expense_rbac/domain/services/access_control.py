"""Role-based access facade.

Read-only query surface used by the rest of the application. Every query
takes the AccessSubject for the current session and answers from the
loaded roles and the feature visibility matrix.
"""

from typing import Iterable, Optional

from expense_rbac.core.config import Settings, get_settings
from expense_rbac.domain.entities.access import AccessSubject, RoleDisplay, RoleNavigation
from expense_rbac.domain.entities.role import Role, role_slug
from expense_rbac.domain.services.feature_visibility_service import FeatureVisibilityManager
from expense_rbac.domain.services.permission_catalog import (
    PermissionCatalog,
    default_permission_catalog,
)
from expense_rbac.domain.services.role_service import RoleService
from expense_rbac.domain.services.system_roles import (
    DEFAULT_ROLE_DISPLAY,
    ROLE_DISPLAY,
    ROLE_LEVELS,
)

# resource type -> (app_id, feature_id)
RESOURCE_FEATURES: dict[str, tuple[str, str]] = {
    "expense": ("expenses", "expenses"),
    "analytics": ("expenses", "analytics"),
    "chart": ("expenses", "charts"),
    "user": ("settings", "user_management"),
    "audit_log": ("settings", "audit_logs"),
    "system": ("settings", "system_config"),
}

# resource type -> minimum role required to delete it
DELETE_MINIMUM_ROLE: dict[str, str] = {
    "expense": "manager",
    "user": "administrator",
}


class RoleBasedAccess:
    """Answers "may this user do X" questions.

    Users whose session carries no role are treated as holding the default
    role (``account_officer`` unless configured otherwise).
    """

    def __init__(
        self,
        roles: RoleService,
        visibility: FeatureVisibilityManager,
        catalog: PermissionCatalog = default_permission_catalog,
        settings: Optional[Settings] = None,
    ) -> None:
        self.roles = roles
        self.visibility = visibility
        self.catalog = catalog
        self.settings = settings or get_settings()

    def role_name(self, subject: AccessSubject) -> str:
        """Slug of the subject's role, falling back to the default role."""
        if subject.role and subject.role.strip():
            return role_slug(subject.role)
        return self.settings.default_role_name

    def current_role(self, subject: AccessSubject) -> Optional[Role]:
        return self.roles.get_role_by_name(self.role_name(subject))

    def has_role(self, subject: AccessSubject, role: str) -> bool:
        return self.role_name(subject) == role_slug(role)

    def has_any_role(self, subject: AccessSubject, roles: Iterable[str]) -> bool:
        current = self.role_name(subject)
        return any(current == role_slug(role) for role in roles)

    def has_minimum_role(self, subject: AccessSubject, minimum_role: str) -> bool:
        """Compare hierarchy levels. An unranked minimum role is never satisfied."""
        required = ROLE_LEVELS.get(role_slug(minimum_role))
        if required is None:
            return False
        return ROLE_LEVELS.get(self.role_name(subject), 0) >= required

    def is_administrator(self, subject: AccessSubject) -> bool:
        return subject.is_admin or self.role_name(subject) == self.settings.administrator_role_name

    def has_permission(self, subject: AccessSubject, resource: str, action: str) -> bool:
        """Check whether the subject's role grants ``action`` on ``resource``.

        A ``*`` resource grant matches every resource, and a ``manage`` grant
        implies every action.
        """
        role = self.current_role(subject)
        if role is None:
            return False
        return self.catalog.allows(role.permissions, resource, action)

    def _active(self, subject: AccessSubject) -> frozenset[str]:
        role = self.current_role(subject)
        if role is None:
            return frozenset()
        return self.visibility.active_features(role.id)

    def accessible_features(self, subject: AccessSubject, app_id: str) -> list[str]:
        """Active feature ids belonging to one application module."""
        graph = self.visibility.graph
        return [
            feature_id
            for feature_id in graph.in_catalog_order(self._active(subject))
            if graph.get_feature(feature_id).app_id == app_id
        ]

    def accessible_apps(self, subject: AccessSubject) -> list[str]:
        graph = self.visibility.graph
        apps: dict[str, None] = {}
        for feature_id in graph.in_catalog_order(self._active(subject)):
            apps.setdefault(graph.get_feature(feature_id).app_id, None)
        return list(apps)

    def can_access_app(self, subject: AccessSubject, app_id: str) -> bool:
        return app_id in self.accessible_apps(subject)

    def can_access_feature(self, subject: AccessSubject, app_id: str, feature_id: str) -> bool:
        feature = self.visibility.graph.get_feature(feature_id)
        if feature is None or feature.app_id != app_id:
            return False
        return feature_id in self._active(subject)

    def _can_use_resource(self, subject: AccessSubject, resource: str) -> bool:
        target = RESOURCE_FEATURES.get(resource)
        if target is None:
            return False
        app_id, feature_id = target
        return self.can_access_feature(subject, app_id, feature_id)

    def can_view(self, subject: AccessSubject, resource: str) -> bool:
        return self._can_use_resource(subject, resource)

    def can_create(self, subject: AccessSubject, resource: str) -> bool:
        return self._can_use_resource(subject, resource)

    def can_edit(self, subject: AccessSubject, resource: str) -> bool:
        return self._can_use_resource(subject, resource)

    def can_delete(self, subject: AccessSubject, resource: str) -> bool:
        """Feature access plus, for higher-risk resources, a minimum role."""
        if not self._can_use_resource(subject, resource):
            return False
        minimum = DELETE_MINIMUM_ROLE.get(resource)
        return minimum is None or self.has_minimum_role(subject, minimum)

    def get_role_display(self, subject: AccessSubject) -> RoleDisplay:
        return ROLE_DISPLAY.get(self.role_name(subject), DEFAULT_ROLE_DISPLAY)

    def get_role_navigation(self, subject: AccessSubject) -> RoleNavigation:
        """Summarize what the subject's navigation should offer."""
        apps = self.accessible_apps(subject)
        return RoleNavigation(
            primary_apps=tuple(apps),
            default_app=apps[0] if apps else None,
            can_manage_users=self.can_access_feature(subject, "settings", "user_management"),
            can_configure_system=self.can_access_feature(subject, "settings", "system_config"),
            can_view_all_data=self.has_minimum_role(subject, "manager"),
        )
