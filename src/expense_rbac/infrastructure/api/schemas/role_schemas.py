"""Role API schemas for request/response validation.

Name, description and permission rules are enforced by the role validator,
not here, so every field error comes back in one response with the same
messages the domain produces.
"""

from pydantic import BaseModel, Field

from expense_rbac.domain.entities.permission import Permission
from expense_rbac.domain.entities.role import Role


class CreateRoleRequest(BaseModel):
    """Request schema for creating a role.

    Attributes:
        name: Human role name; stored as a lowercase slug.
        description: What the role is for.
        permissions: Permission keys to grant.
    """

    name: str | None = None
    description: str | None = None
    permissions: list[str] = Field(default_factory=list)


class UpdateRoleRequest(BaseModel):
    """Request schema for a partial role update. Omitted fields are unchanged."""

    name: str | None = None
    description: str | None = None
    permissions: list[str] | None = None


class RolePermissionToggleRequest(BaseModel):
    """Grant or revoke a single permission."""

    granted: bool


class RoleResponse(BaseModel):
    """Response schema for a role."""

    id: str
    name: str
    display_name: str
    description: str
    permissions: list[str]
    is_system_role: bool
    user_count: int

    @classmethod
    def from_role(cls, role: Role) -> "RoleResponse":
        return cls(
            id=role.id,
            name=role.name,
            display_name=role.display_name,
            description=role.description,
            permissions=sorted(role.permissions),
            is_system_role=role.is_system_role,
            user_count=role.user_count,
        )


class RoleListResponse(BaseModel):
    """Response schema for listing roles."""

    items: list[RoleResponse]
    total: int


class RoleValidationResponse(BaseModel):
    """Result of validating role input without saving it.

    Attributes:
        is_valid: True when every rule passed.
        errors: Field name to message for each failed rule.
    """

    is_valid: bool
    errors: dict[str, str] = Field(default_factory=dict)


class PermissionResponse(BaseModel):
    """A permission catalog entry."""

    key: str
    name: str
    description: str
    category: str
    resource: str
    action: str

    @classmethod
    def from_permission(cls, permission: Permission) -> "PermissionResponse":
        return cls(
            key=permission.key,
            name=permission.name,
            description=permission.description,
            category=permission.category,
            resource=permission.resource,
            action=permission.action,
        )


class PermissionCatalogResponse(BaseModel):
    """The permission catalog grouped by category."""

    categories: dict[str, list[PermissionResponse]]
    total: int
