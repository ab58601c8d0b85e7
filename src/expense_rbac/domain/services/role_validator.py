"""Role and feature change validation.

Validators return tagged results and never raise for bad input, so the
caller can render every message inline. Role input is checked against the
permission catalog; feature changes are checked against the dependency
graph and the role's currently active feature set.
"""

from typing import Iterable, Optional

from expense_rbac.domain.entities.feature import BulkOperation
from expense_rbac.domain.entities.role import Role, RoleInput
from expense_rbac.domain.entities.validation import (
    FeatureChangeRejected,
    FeatureChangeResult,
    Invalid,
    Valid,
    ValidationResult,
)
from expense_rbac.domain.services.feature_catalog import (
    FeatureDependencyGraph,
    default_feature_graph,
)
from expense_rbac.domain.services.permission_catalog import (
    PermissionCatalog,
    default_permission_catalog,
)

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 255


def validate_role_name(name: Optional[str]) -> Optional[str]:
    """Check a role name.

    Returns:
        The error message, or None when the name is acceptable.
    """
    trimmed = (name or "").strip()
    if not trimmed:
        return "Role name is required"
    if len(trimmed) < MIN_NAME_LENGTH:
        return f"Role name must be at least {MIN_NAME_LENGTH} characters"
    if len(trimmed) > MAX_NAME_LENGTH:
        return f"Role name must be at most {MAX_NAME_LENGTH} characters"
    return None


def validate_role_description(description: Optional[str]) -> Optional[str]:
    """Check a role description.

    Returns:
        The error message, or None when the description is acceptable.
    """
    trimmed = (description or "").strip()
    if not trimmed:
        return "Role description is required"
    if len(trimmed) > MAX_DESCRIPTION_LENGTH:
        return f"Role description must be at most {MAX_DESCRIPTION_LENGTH} characters"
    return None


def validate_role_permissions(
    permissions: Optional[Iterable[str]],
    catalog: PermissionCatalog = default_permission_catalog,
) -> Optional[str]:
    """Check a permission key list: non-empty and drawn from the catalog."""
    keys = list(permissions or [])
    if not keys:
        return "At least one permission must be selected"
    unknown = catalog.unknown_keys(keys)
    if unknown:
        return f"Unknown permission: {unknown[0]}"
    return None


def validate_role(
    data: RoleInput,
    catalog: PermissionCatalog = default_permission_catalog,
) -> ValidationResult:
    """Validate input for a new role.

    Args:
        data: Name, description and permission keys as entered.
        catalog: Permission catalog the keys must come from.

    Returns:
        Valid, or Invalid with one message per failing field
        ('name', 'description', 'permissions').
    """
    errors: dict[str, str] = {}

    name_error = validate_role_name(data.name)
    if name_error:
        errors["name"] = name_error

    description_error = validate_role_description(data.description)
    if description_error:
        errors["description"] = description_error

    permissions_error = validate_role_permissions(data.permissions, catalog)
    if permissions_error:
        errors["permissions"] = permissions_error

    if errors:
        return Invalid(errors=errors)
    return Valid()


class FeatureChangeValidator:
    """Business rules for turning a feature on or off for a role.

    The validator is pure: callers pass in the role, its active feature set
    and, optionally, how many users hold the role.
    """

    def __init__(
        self,
        graph: FeatureDependencyGraph = default_feature_graph,
        administrator_role_name: str = "administrator",
    ) -> None:
        self.graph = graph
        self.administrator_role_name = administrator_role_name

    def is_administrator(self, role: Optional[Role]) -> bool:
        return role is not None and role.name == self.administrator_role_name

    def validate_feature_change(
        self,
        role: Optional[Role],
        feature_id: str,
        enabled: bool,
        active_features: Iterable[str],
        affected_users: Optional[int] = None,
    ) -> FeatureChangeResult:
        """Validate activating or deactivating one feature for a role.

        Args:
            role: The role being changed. An unknown role (None) is treated
                as a non-administrator.
            feature_id: Feature to change.
            enabled: Target state.
            active_features: Feature ids currently active for the role.
            affected_users: Users holding the role; None skips the check.

        Returns:
            FeatureChangeAccepted or FeatureChangeRejected. Disabling a
            feature with active dependents is accepted with a warning and
            ``requires_confirmation`` set, unless the cascade would reach a
            core feature.
        """
        feature = self.graph.get_feature(feature_id)
        if feature is None:
            return FeatureChangeRejected(errors=("Feature not found",))

        active = set(active_features)
        errors: list[str] = []
        warnings: list[str] = []
        requires_confirmation = False

        if not enabled and feature.is_core:
            errors.append("Cannot disable core functionality")

        if enabled and feature.admin_only and not self.is_administrator(role):
            errors.append("Admin-only features cannot be enabled for non-administrator roles")

        if enabled:
            missing = self.graph.missing_dependencies(feature_id, active)
            if missing:
                names = ", ".join(dependency.name for dependency in missing)
                errors.append(f"{feature.name} requires {names} access")
        else:
            dependents = self.graph.active_dependents(feature_id, active)
            if not feature.is_core and any(dependent.is_core for dependent in dependents):
                errors.append("Cannot disable core functionality")
            elif dependents:
                names = ", ".join(dependent.name for dependent in dependents)
                warnings.append(f"Disabling {feature.name} will also disable {names}")
                requires_confirmation = True

        if affected_users is not None and affected_users > 1:
            warnings.append(f"This will affect {affected_users} users")
            requires_confirmation = True

        return FeatureChangeResult.from_findings(errors, warnings, requires_confirmation)

    def validate_bulk_operation(
        self,
        operation: BulkOperation,
        known_role_ids: Iterable[str],
    ) -> FeatureChangeResult:
        """Validate a category-wide enable or disable.

        Disabling a category that holds a core feature for every known role
        is rejected. Anything else is accepted; per-pair rules are enforced
        when each pair is applied.
        """
        errors: list[str] = []

        if not operation.enabled:
            category = self.graph.get_category(operation.category_id)
            known = set(known_role_ids)
            covers_all = bool(known) and known.issubset(operation.role_ids)
            if category is not None and category.has_core_features and covers_all:
                errors.append("Cannot disable core features for all users")

        return FeatureChangeResult.from_findings(errors, [])
