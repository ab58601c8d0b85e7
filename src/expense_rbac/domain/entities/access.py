"""The authenticated user as seen by access checks, and role presentation data."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AccessSubject:
    """Current session user.

    Attributes:
        user_id: Identifier of the authenticated user.
        role: Role slug from the user's profile, if any.
        is_admin: Session-level administrator flag.
    """

    user_id: str
    role: Optional[str] = None
    is_admin: bool = False


@dataclass(frozen=True)
class RoleDisplay:
    """How a role is presented to the user."""

    label: str
    description: str
    badge_variant: str
    icon: str


@dataclass(frozen=True)
class RoleNavigation:
    """Navigation summary for a user's role.

    Attributes:
        primary_apps: Application modules with at least one active feature.
        default_app: First entry of ``primary_apps``, if any.
        can_manage_users: The user-management feature is active.
        can_configure_system: The system-configuration feature is active.
        can_view_all_data: The role ranks manager or above.
    """

    primary_apps: tuple[str, ...]
    default_app: Optional[str]
    can_manage_users: bool
    can_configure_system: bool
    can_view_all_data: bool
