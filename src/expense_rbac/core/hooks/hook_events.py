"""Hook event definitions.

Every event the RBAC subsystem publishes through the hook registry.
Adding new events is allowed; renaming one breaks existing subscribers.
"""


class HookCategory:
    """Categories for organizing hook events."""

    APP_LIFECYCLE = "app_lifecycle"
    ROLE_OPERATIONS = "role_operations"
    FEATURE_VISIBILITY = "feature_visibility"


class HookEvent:
    """Hook event names."""

    # App Lifecycle Events
    ON_BOOTSTRAP = "on_bootstrap"
    ON_TERMINATE = "on_terminate"

    # Role Operations
    ON_ROLE_CREATE = "on_role_create"
    ON_ROLE_UPDATE = "on_role_update"
    ON_ROLE_DELETE = "on_role_delete"

    # Feature Visibility
    # Kept as "roleUpdate" so existing front-end subscribers keep matching.
    ON_ROLE_FEATURE_UPDATE = "roleUpdate"
    ON_BULK_OPERATION_COMPLETE = "on_bulk_operation_complete"


EVENT_CATEGORIES: dict[str, list[str]] = {
    HookCategory.APP_LIFECYCLE: [
        HookEvent.ON_BOOTSTRAP,
        HookEvent.ON_TERMINATE,
    ],
    HookCategory.ROLE_OPERATIONS: [
        HookEvent.ON_ROLE_CREATE,
        HookEvent.ON_ROLE_UPDATE,
        HookEvent.ON_ROLE_DELETE,
    ],
    HookCategory.FEATURE_VISIBILITY: [
        HookEvent.ON_ROLE_FEATURE_UPDATE,
        HookEvent.ON_BULK_OPERATION_COMPLETE,
    ],
}


def get_all_events() -> list[str]:
    """Get a flat list of all known hook events."""
    events: list[str] = []
    for category_events in EVENT_CATEGORIES.values():
        events.extend(category_events)
    return events
