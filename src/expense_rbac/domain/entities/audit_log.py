"""Settings audit log entity.

Every write made through the role and visibility stores is recorded with
the before and after values of the affected row.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class AuditLogEntry:
    """One recorded settings change.

    Attributes:
        id: Entry identifier.
        user_id: Acting user, None for system changes (startup seeding).
        action: 'create', 'update' or 'delete'.
        resource_type: 'role', 'role_permissions' or 'feature_visibility'.
        resource_id: Identifier of the changed row.
        old_values: Row values before the change.
        new_values: Row values after the change.
        timestamp: When the change was recorded.
    """

    id: str
    user_id: str | None
    action: str
    resource_type: str
    resource_id: str
    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None
    timestamp: datetime
