"""Exceptions raised by role and feature visibility operations.

Validators return results; these are raised by the mutating operations
when a business rule blocks the change or the store fails. Every message
is human-readable and safe to show to an administrator.
"""

from expense_rbac.domain.entities.validation import FeatureChangeResult, Invalid


class AccessControlError(Exception):
    """Base class for all RBAC errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RoleValidationError(AccessControlError):
    """Raised when role input fails validation."""

    def __init__(self, result: Invalid) -> None:
        self.result = result
        super().__init__(result.first_error)

    @property
    def errors(self) -> dict[str, str]:
        return self.result.errors


class DuplicateRoleError(AccessControlError):
    """Raised when a role name collides with an existing role."""

    def __init__(self, message: str = "A role with this name already exists") -> None:
        super().__init__(message)


class RoleNotFoundError(AccessControlError):
    """Raised when a role id does not resolve."""

    def __init__(self, role_id: str) -> None:
        self.role_id = role_id
        super().__init__("Role not found")


class RoleDeletionError(AccessControlError):
    """Raised when a role cannot be deleted because users hold it."""


class SystemRoleError(AccessControlError):
    """Raised when an operation would alter a system role's identity."""


class PermissionInvariantError(AccessControlError):
    """Raised when a role would be left without permissions."""


class FeatureChangeError(AccessControlError):
    """Raised when a feature change fails validation."""

    def __init__(self, message: str, result: FeatureChangeResult | None = None) -> None:
        self.result = result
        super().__init__(message)


class BulkOperationError(AccessControlError):
    """Raised when a bulk operation is rejected before any change is made."""

    def __init__(self, message: str, result: FeatureChangeResult | None = None) -> None:
        self.result = result
        super().__init__(message)


class CategoryNotFoundError(AccessControlError):
    """Raised when a bulk operation names an unknown feature category."""

    def __init__(self, category_id: str) -> None:
        self.category_id = category_id
        super().__init__("Category not found")


class PersistenceError(AccessControlError):
    """Raised when the backing store rejects or fails a read or write."""
