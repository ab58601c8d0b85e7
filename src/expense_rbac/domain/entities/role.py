"""Role entity and the input shapes used to create or change one.

A role bundles granted permission keys. Its ``name`` is the storage slug
(lowercase, whitespace collapsed to underscores) and is unique among live
roles; ``display_name`` keeps the form an administrator typed.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable

_WHITESPACE = re.compile(r"\s+")


def role_slug(name: str) -> str:
    """Normalize a human role name to its storage slug.

    Examples:
        >>> role_slug("  Account Officer ")
        'account_officer'
        >>> role_slug("Manager")
        'manager'
    """
    return _WHITESPACE.sub("_", name.strip().lower())


@dataclass(frozen=True)
class Role:
    """Role entity for user authorization.

    Attributes:
        id: Opaque, stable identifier assigned by the store.
        name: Unique slug (e.g. 'account_officer').
        display_name: Human-readable name (e.g. 'Account Officer').
        description: What the role is for.
        permissions: Granted permission keys; never empty for a live role.
        is_system_role: System roles cannot be deleted or renamed.
        user_count: Users currently assigned the role (derived, may be stale).
    """

    id: str
    name: str
    display_name: str
    description: str
    permissions: frozenset[str] = field(default_factory=frozenset)
    is_system_role: bool = False
    user_count: int = 0

    def __post_init__(self) -> None:
        """Validate role data after initialization."""
        if not self.id:
            raise ValueError("Role id is required")
        if not self.name:
            raise ValueError("Role name is required")
        if not isinstance(self.permissions, frozenset):
            object.__setattr__(self, "permissions", frozenset(self.permissions))


@dataclass
class RoleInput:
    """Administrator-supplied data for a new role."""

    name: str | None
    description: str | None
    permissions: list[str] = field(default_factory=list)


@dataclass
class RoleUpdate:
    """Partial role update; ``None`` means "leave unchanged"."""

    name: str | None = None
    description: str | None = None
    permissions: list[str] | None = None

    def is_empty(self) -> bool:
        return self.name is None and self.description is None and self.permissions is None


@dataclass
class NewRole:
    """Validated, normalized role data handed to the store for creation."""

    name: str
    display_name: str
    description: str
    permissions: list[str]
    is_system_role: bool = False

    @classmethod
    def from_input(cls, data: RoleInput) -> "NewRole":
        """Build a NewRole from input that already passed validation."""
        display_name = (data.name or "").strip()
        return cls(
            name=role_slug(display_name),
            display_name=display_name,
            description=(data.description or "").strip(),
            permissions=_unique(data.permissions),
        )


def _unique(keys: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for key in keys:
        seen.setdefault(key, None)
    return list(seen)
