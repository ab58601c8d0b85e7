"""Request-scoped actor tracking using ContextVars.

The persistence layer records who changed a role or a visibility entry in
the settings audit log. The acting user is bound once per request by the
API layer and read back deep inside the store without threading it
through every service call.
"""

from contextvars import ContextVar
from typing import Optional

_current_actor_id: ContextVar[Optional[str]] = ContextVar("current_actor_id", default=None)


def get_current_actor() -> Optional[str]:
    """Get the ID of the user performing the current operation."""
    return _current_actor_id.get()


def set_current_actor(user_id: Optional[str]) -> None:
    """Set the ID of the user performing the current operation."""
    _current_actor_id.set(user_id)


def clear_current_actor() -> None:
    """Clear the acting user."""
    _current_actor_id.set(None)
