"""Permission entity for role-based access control.

Permissions are immutable catalog entries. Each one grants an ``action``
on a ``resource``; ``resource == "*"`` matches every resource and
``action == "manage"`` implies every action.
"""

from dataclasses import dataclass

WILDCARD_RESOURCE = "*"
MANAGE_ACTION = "manage"


@dataclass(frozen=True)
class Permission:
    """Permission catalog entry.

    Attributes:
        key: Unique, stable identifier stored against roles.
        name: Display name.
        description: What the permission allows.
        category: Grouping used by the permission matrix ('admin', 'expense', ...).
        resource: Resource the permission applies to, or '*'.
        action: Allowed action ('read', 'write', 'manage').
    """

    key: str
    name: str
    description: str
    category: str
    resource: str
    action: str

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Permission key is required")
        if not self.resource or not self.action:
            raise ValueError("Permission resource and action are required")

    def allows(self, resource: str, action: str) -> bool:
        """Check whether this permission grants ``action`` on ``resource``."""
        resource_matches = self.resource in (WILDCARD_RESOURCE, resource)
        action_matches = self.action in (MANAGE_ACTION, action)
        return resource_matches and action_matches
