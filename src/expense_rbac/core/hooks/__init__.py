"""Hook system core module.

Publishes role and feature-visibility events to subscribers.

Example usage:
    from expense_rbac.core.hooks import HookEvent, HookRegistry

    registry = HookRegistry()

    async def audit_toggle(event, data):
        logger.info("Feature toggled", **data)

    subscription = registry.subscribe(HookEvent.ON_ROLE_FEATURE_UPDATE, audit_toggle)
    ...
    subscription.dispose()
"""

from expense_rbac.core.hooks.hook_events import (
    EVENT_CATEGORIES,
    HookCategory,
    HookEvent,
    get_all_events,
)
from expense_rbac.core.hooks.hook_registry import (
    DispatchResult,
    HookRegistry,
    RegisteredHook,
    Subscription,
)

__all__ = [
    "DispatchResult",
    "EVENT_CATEGORIES",
    "HookCategory",
    "HookEvent",
    "HookRegistry",
    "RegisteredHook",
    "Subscription",
    "get_all_events",
]
