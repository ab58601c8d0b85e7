"""Roles API routes.

Role CRUD, the permission catalog and single-permission grants. Every
route requires an administrator.
"""

from fastapi import APIRouter, Response, status

from expense_rbac.core.logging import get_logger
from expense_rbac.domain.entities.role import RoleInput, RoleUpdate
from expense_rbac.domain.exceptions import RoleNotFoundError
from expense_rbac.domain.services.role_validator import validate_role
from expense_rbac.infrastructure.api.dependencies import AccessContext, AdminUser
from expense_rbac.infrastructure.api.schemas import (
    CreateRoleRequest,
    PermissionCatalogResponse,
    PermissionResponse,
    RoleListResponse,
    RolePermissionToggleRequest,
    RoleResponse,
    RoleValidationResponse,
    UpdateRoleRequest,
)

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=RoleListResponse,
    responses={
        403: {"description": "Administrator access required"},
        502: {"description": "Roles could not be loaded"},
    },
)
async def list_roles(
    current_user: AdminUser,
    context: AccessContext,
    refresh: bool = False,
) -> RoleListResponse:
    """List all roles with their permissions and user counts.

    Args:
        current_user: Authenticated administrator.
        context: Access control services.
        refresh: Reload roles from the store before answering.
    """
    if refresh or not context.roles.loaded:
        await context.roles.fetch_roles()

    items = [RoleResponse.from_role(role) for role in context.roles.roles]

    logger.debug("Roles listed", count=len(items), requested_by=current_user.user_id)

    return RoleListResponse(items=items, total=len(items))


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=RoleResponse,
    responses={
        403: {"description": "Administrator access required"},
        409: {"description": "Role name already exists"},
        422: {"description": "Validation error"},
    },
)
async def create_role(
    role_request: CreateRoleRequest,
    current_user: AdminUser,
    context: AccessContext,
) -> RoleResponse:
    """Create a new role.

    The role also receives every core feature.
    """
    role = await context.roles.create_role(
        RoleInput(
            name=role_request.name,
            description=role_request.description,
            permissions=role_request.permissions,
        )
    )

    logger.info(
        "Role created",
        role_id=role.id,
        role_name=role.name,
        created_by=current_user.user_id,
    )

    return RoleResponse.from_role(role)


@router.get(
    "/permissions",
    status_code=status.HTTP_200_OK,
    response_model=PermissionCatalogResponse,
    responses={403: {"description": "Administrator access required"}},
)
async def get_permission_catalog(
    current_user: AdminUser,
    context: AccessContext,
) -> PermissionCatalogResponse:
    """Get the permission catalog grouped by category."""
    return PermissionCatalogResponse(
        categories={
            category: [PermissionResponse.from_permission(p) for p in permissions]
            for category, permissions in context.catalog.by_category().items()
        },
        total=len(context.catalog),
    )


@router.post(
    "/validate",
    status_code=status.HTTP_200_OK,
    response_model=RoleValidationResponse,
    responses={403: {"description": "Administrator access required"}},
)
async def validate_role_input(
    role_request: CreateRoleRequest,
    current_user: AdminUser,
    context: AccessContext,
) -> RoleValidationResponse:
    """Validate role input without saving it."""
    result = validate_role(
        RoleInput(
            name=role_request.name,
            description=role_request.description,
            permissions=role_request.permissions,
        ),
        context.catalog,
    )
    return RoleValidationResponse(is_valid=result.is_valid, errors=result.errors)


@router.get(
    "/{role_id}",
    status_code=status.HTTP_200_OK,
    response_model=RoleResponse,
    responses={
        403: {"description": "Administrator access required"},
        404: {"description": "Role not found"},
    },
)
async def get_role(
    role_id: str,
    current_user: AdminUser,
    context: AccessContext,
) -> RoleResponse:
    """Get a role by ID."""
    await context.roles.ensure_loaded()
    role = context.roles.get_role(role_id)
    if role is None:
        raise RoleNotFoundError(role_id)
    return RoleResponse.from_role(role)


@router.patch(
    "/{role_id}",
    status_code=status.HTTP_200_OK,
    response_model=RoleResponse,
    responses={
        400: {"description": "System role or permission rule violated"},
        403: {"description": "Administrator access required"},
        404: {"description": "Role not found"},
        409: {"description": "Role name already exists"},
        422: {"description": "Validation error"},
    },
)
async def update_role(
    role_id: str,
    role_request: UpdateRoleRequest,
    current_user: AdminUser,
    context: AccessContext,
) -> RoleResponse:
    """Update a role's name, description or permissions.

    System roles keep their name; a role always keeps at least one permission.
    """
    role = await context.roles.update_role(
        role_id,
        RoleUpdate(
            name=role_request.name,
            description=role_request.description,
            permissions=role_request.permissions,
        ),
    )

    logger.info("Role updated", role_id=role_id, updated_by=current_user.user_id)

    return RoleResponse.from_role(role)


@router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        400: {"description": "Role is a system role or has assigned users"},
        403: {"description": "Administrator access required"},
        404: {"description": "Role not found"},
    },
)
async def delete_role(
    role_id: str,
    current_user: AdminUser,
    context: AccessContext,
) -> Response:
    """Delete a role.

    Roles with assigned users and system roles cannot be deleted.
    """
    await context.roles.delete_role(role_id)

    logger.info("Role deleted", role_id=role_id, deleted_by=current_user.user_id)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/{role_id}/permissions/{permission_key}",
    status_code=status.HTTP_200_OK,
    response_model=RoleResponse,
    responses={
        400: {"description": "Role would be left without permissions"},
        403: {"description": "Administrator access required"},
        404: {"description": "Role not found"},
        422: {"description": "Unknown permission"},
    },
)
async def set_role_permission(
    role_id: str,
    permission_key: str,
    toggle: RolePermissionToggleRequest,
    current_user: AdminUser,
    context: AccessContext,
) -> RoleResponse:
    """Grant or revoke one permission on a role."""
    role = await context.roles.update_role_permissions(role_id, permission_key, toggle.granted)

    logger.info(
        "Role permission changed",
        role_id=role_id,
        permission_key=permission_key,
        granted=toggle.granted,
        changed_by=current_user.user_id,
    )

    return RoleResponse.from_role(role)
