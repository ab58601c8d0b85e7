"""Role CRUD orchestration.

RoleService owns the loaded role list for the application. Mutations are
validated, checked against the loaded roles, persisted through the
RoleDataStore, merged into local state and then published as hook events.
"""

from dataclasses import replace
from typing import Any, Optional

from expense_rbac.core.hooks import HookEvent, HookRegistry
from expense_rbac.core.logging import get_logger
from expense_rbac.domain.entities.role import NewRole, Role, RoleInput, RoleUpdate, role_slug
from expense_rbac.domain.entities.validation import Invalid
from expense_rbac.domain.exceptions import (
    DuplicateRoleError,
    PermissionInvariantError,
    RoleDeletionError,
    RoleNotFoundError,
    RoleValidationError,
    SystemRoleError,
)
from expense_rbac.domain.services.permission_catalog import (
    PermissionCatalog,
    default_permission_catalog,
)
from expense_rbac.domain.services.role_data_store import RoleDataStore
from expense_rbac.domain.services.role_validator import (
    validate_role,
    validate_role_description,
    validate_role_name,
    validate_role_permissions,
)

logger = get_logger(__name__)


class RoleService:
    """Application-scoped role store.

    Created once at startup and shared by the API layer. ``reset()`` drops
    the loaded state on sign-out or role-data invalidation.
    """

    def __init__(
        self,
        store: RoleDataStore,
        events: Optional[HookRegistry] = None,
        catalog: PermissionCatalog = default_permission_catalog,
        administrator_role_name: str = "administrator",
    ) -> None:
        """Initialize the service.

        Args:
            store: Persisted role store.
            events: Registry role events are published to, if any.
            catalog: Permission catalog role grants are drawn from.
            administrator_role_name: Slug of the administrator role.
        """
        self.store = store
        self.events = events
        self.catalog = catalog
        self.administrator_role_name = administrator_role_name
        self._roles: list[Role] = []
        self._loaded = False
        self.error: Optional[str] = None

    @property
    def roles(self) -> list[Role]:
        return list(self._roles)

    @property
    def role_ids(self) -> list[str]:
        return [role.id for role in self._roles]

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def fetch_roles(self) -> list[Role]:
        """Reload every role from the store.

        Never raises. On failure the loaded list is emptied and ``error``
        holds a message describing what went wrong.

        Returns:
            The loaded roles, or an empty list on failure.
        """
        try:
            roles = await self.store.list_roles()
        except Exception as e:
            logger.error("Failed to fetch roles", error=str(e))
            self._roles = []
            self._loaded = False
            self.error = f"Failed to load roles: {e}"
            return []

        self._roles = list(roles)
        self._loaded = True
        self.error = None
        logger.debug("Roles loaded", role_count=len(self._roles))
        return self.roles

    async def ensure_loaded(self) -> None:
        if not self._loaded:
            await self.fetch_roles()

    def reset(self) -> None:
        """Forget every loaded role."""
        self._roles = []
        self._loaded = False
        self.error = None

    def get_role(self, role_id: str) -> Optional[Role]:
        for role in self._roles:
            if role.id == role_id:
                return role
        return None

    def get_role_by_name(self, name: str) -> Optional[Role]:
        """Find a role by name, ignoring case and whitespace differences."""
        slug = role_slug(name)
        for role in self._roles:
            if role.name == slug:
                return role
        return None

    def user_count(self, role_id: str) -> int:
        role = self.get_role(role_id)
        return role.user_count if role else 0

    def is_administrator_role(self, role_id: str) -> bool:
        role = self.get_role(role_id)
        return role is not None and role.name == self.administrator_role_name

    def _require_role(self, role_id: str) -> Role:
        role = self.get_role(role_id)
        if role is None:
            raise RoleNotFoundError(role_id)
        return role

    def _name_taken(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        return any(role.name == slug and role.id != exclude_id for role in self._roles)

    def _replace_local(self, updated: Role) -> None:
        self._roles = [updated if role.id == updated.id else role for role in self._roles]

    async def _publish(self, event: str, data: dict[str, Any]) -> None:
        if self.events is not None:
            await self.events.trigger(event, data)

    async def create_role(self, data: RoleInput) -> Role:
        """Validate and persist a new role.

        Args:
            data: Role input as entered by the administrator.

        Returns:
            The stored role.

        Raises:
            RoleValidationError: If the input fails validation.
            DuplicateRoleError: If a role with the same name already exists.
            PersistenceError: If the store rejects the write.
        """
        result = validate_role(data, self.catalog)
        if isinstance(result, Invalid):
            raise RoleValidationError(result)

        await self.ensure_loaded()

        new_role = NewRole.from_input(data)
        if self._name_taken(new_role.name):
            raise DuplicateRoleError()

        role = await self.store.create_role(new_role)
        self._roles.append(role)

        logger.info(
            "Role created",
            role_id=role.id,
            role_name=role.name,
            permission_count=len(role.permissions),
        )
        await self._publish(HookEvent.ON_ROLE_CREATE, {"role_id": role.id, "name": role.name})
        return role

    async def update_role(self, role_id: str, updates: RoleUpdate) -> Role:
        """Apply a partial update to a role.

        Only the fields present in ``updates`` are validated and persisted.

        Raises:
            RoleNotFoundError: If the role is not loaded.
            RoleValidationError: If a supplied field fails validation.
            DuplicateRoleError: If the new name collides with another role.
            SystemRoleError: If the name of a system role would change.
            PermissionInvariantError: If the permission list is empty.
            PersistenceError: If the store rejects the write.
        """
        role = self._require_role(role_id)
        changes: dict[str, Any] = {}
        merged = role

        if updates.name is not None:
            name_error = validate_role_name(updates.name)
            if name_error:
                raise RoleValidationError(Invalid(errors={"name": name_error}))
            display_name = updates.name.strip()
            slug = role_slug(display_name)
            if slug != role.name:
                if role.is_system_role:
                    raise SystemRoleError("System role names cannot be changed")
                if self._name_taken(slug, exclude_id=role_id):
                    raise DuplicateRoleError()
                changes["name"] = slug
            if display_name != role.display_name:
                changes["display_name"] = display_name

        if updates.description is not None:
            description_error = validate_role_description(updates.description)
            if description_error:
                raise RoleValidationError(Invalid(errors={"description": description_error}))
            description = updates.description.strip()
            if description != role.description:
                changes["description"] = description

        permissions: Optional[list[str]] = None
        if updates.permissions is not None:
            if not updates.permissions:
                raise PermissionInvariantError("At least one permission must be selected")
            permissions_error = validate_role_permissions(updates.permissions, self.catalog)
            if permissions_error:
                raise RoleValidationError(Invalid(errors={"permissions": permissions_error}))
            permissions = list(dict.fromkeys(updates.permissions))

        if changes:
            await self.store.update_role(role_id, changes)
            merged = replace(merged, **changes)
            self._replace_local(merged)
        if permissions is not None:
            await self.store.upsert_role_permissions(role_id, permissions)
            merged = replace(merged, permissions=frozenset(permissions))

        self._replace_local(merged)

        changed_fields = list(changes) + (["permissions"] if permissions is not None else [])
        logger.info("Role updated", role_id=role_id, changed_fields=changed_fields)
        await self._publish(
            HookEvent.ON_ROLE_UPDATE,
            {"role_id": role_id, "changed_fields": changed_fields},
        )
        return merged

    async def delete_role(self, role_id: str) -> None:
        """Delete a role that no user holds.

        Raises:
            RoleNotFoundError: If the role is not loaded.
            RoleDeletionError: If users are still assigned the role.
            SystemRoleError: If the role is a system role.
            PersistenceError: If the store rejects the delete.
        """
        role = self._require_role(role_id)

        if role.user_count > 0:
            raise RoleDeletionError(
                f"Cannot delete role with {role.user_count} assigned users"
            )
        if role.is_system_role:
            raise SystemRoleError("System roles cannot be deleted")

        await self.store.delete_role(role_id)
        self._roles = [r for r in self._roles if r.id != role_id]

        logger.info("Role deleted", role_id=role_id, role_name=role.name)
        await self._publish(HookEvent.ON_ROLE_DELETE, {"role_id": role_id, "name": role.name})

    async def update_role_permissions(
        self,
        role_id: str,
        permission_key: str,
        granted: bool,
    ) -> Role:
        """Grant or revoke a single permission.

        Args:
            role_id: Role to change.
            permission_key: Permission to add or remove.
            granted: True to grant, False to revoke.

        Returns:
            The updated role (unchanged if the grant already matched).

        Raises:
            PermissionInvariantError: If revoking would leave no permissions.
        """
        role = self._require_role(role_id)

        if granted:
            permissions = set(role.permissions) | {permission_key}
        else:
            permissions = set(role.permissions) - {permission_key}

        if not permissions:
            raise PermissionInvariantError("At least one permission must remain assigned")
        if permissions == set(role.permissions):
            return role

        return await self.update_role(role_id, RoleUpdate(permissions=sorted(permissions)))
