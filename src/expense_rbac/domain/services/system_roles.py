"""Built-in system roles.

The four roles every installation starts with, their rank in the role
hierarchy, default permission grants, default active features and display
metadata.
"""

from dataclasses import dataclass

from expense_rbac.domain.entities.access import RoleDisplay


@dataclass(frozen=True)
class SystemRoleDefinition:
    """Seed data for one system role."""

    name: str
    display_name: str
    description: str
    level: int
    permissions: tuple[str, ...]
    features: tuple[str, ...]
    display: RoleDisplay


_SHARED_FEATURES = ("expenses", "settings", "navigation", "notifications")

SYSTEM_ROLES: tuple[SystemRoleDefinition, ...] = (
    SystemRoleDefinition(
        name="administrator",
        display_name="Administrator",
        description="Full system access and user management",
        level=4,
        permissions=(
            "full_access",
            "user_management",
            "system_config",
            "expense_read",
            "expense_write",
            "report_access",
            "audit_logs",
        ),
        features=_SHARED_FEATURES
        + ("analytics", "charts", "themes", "user_management", "system_config", "audit_logs"),
        display=RoleDisplay(
            label="Administrator",
            description="Full system access and user management",
            badge_variant="default",
            icon="Crown",
        ),
    ),
    SystemRoleDefinition(
        name="manager",
        display_name="Manager",
        description="Manages expenses and reviews reports",
        level=3,
        permissions=("expense_read", "expense_write", "report_access"),
        features=_SHARED_FEATURES + ("analytics", "charts", "themes"),
        display=RoleDisplay(
            label="Manager",
            description="Access to expenses and reporting",
            badge_variant="secondary",
            icon="Users",
        ),
    ),
    SystemRoleDefinition(
        name="teacher",
        display_name="Teacher",
        description="Views expenses relevant to teaching staff",
        level=2,
        permissions=("expense_read",),
        features=_SHARED_FEATURES + ("themes",),
        display=RoleDisplay(
            label="Teacher",
            description="Read-only access to expenses",
            badge_variant="outline",
            icon="GraduationCap",
        ),
    ),
    SystemRoleDefinition(
        name="account_officer",
        display_name="Account Officer",
        description="Records and maintains expenses",
        level=1,
        permissions=("expense_read", "expense_write"),
        features=_SHARED_FEATURES + ("charts",),
        display=RoleDisplay(
            label="Account Officer",
            description="Access to expense management only",
            badge_variant="outline",
            icon="Calculator",
        ),
    ),
)

ROLE_LEVELS: dict[str, int] = {role.name: role.level for role in SYSTEM_ROLES}

ROLE_DISPLAY: dict[str, RoleDisplay] = {role.name: role.display for role in SYSTEM_ROLES}

DEFAULT_ROLE_DISPLAY = RoleDisplay(
    label="User",
    description="Basic access",
    badge_variant="outline",
    icon="User",
)


def get_system_role(name: str) -> SystemRoleDefinition | None:
    for role in SYSTEM_ROLES:
        if role.name == name:
            return role
    return None
