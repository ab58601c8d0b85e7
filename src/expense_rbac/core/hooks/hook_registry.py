"""Hook registry - subscription and dispatch of RBAC events.

The HookRegistry provides:
- Registration of callbacks per event with priority ordering
- A Subscription handle per registration that deregisters deterministically
- Error isolation: a failing subscriber is logged and never breaks the
  operation that published the event
"""

import asyncio
import itertools
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from expense_rbac.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RegisteredHook:
    """Internal representation of a registered hook.

    Attributes:
        id: Unique identifier for this registration.
        event: The event this hook is registered for.
        callback: Sync or async callable taking ``(event, data)``.
        priority: Execution priority (higher = earlier).
        registration_order: Order in which this hook was registered.
    """

    id: str
    event: str
    callback: Callable
    priority: int = 0
    registration_order: int = 0


@dataclass
class DispatchResult:
    """Outcome of triggering an event.

    Attributes:
        delivered: Number of subscribers that ran without raising.
        errors: One message per subscriber that raised.
    """

    delivered: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class Subscription:
    """Disposer handle returned by ``HookRegistry.subscribe``.

    Calling ``dispose()`` more than once is harmless. The handle also works
    as a context manager so a subscriber can be scoped to a block.
    """

    def __init__(self, registry: "HookRegistry", hook_id: str, event: str) -> None:
        self._registry = registry
        self.id = hook_id
        self.event = event
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def dispose(self) -> bool:
        """Deregister the callback.

        Returns:
            True if the callback was removed by this call.
        """
        if not self._active:
            return False
        self._active = False
        return self._registry.unsubscribe(self.id)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *args: Any) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"<Subscription(id={self.id}, event={self.event}, active={self._active})>"


class HookRegistry:
    """Central hook registration and dispatch.

    Example:
        registry = HookRegistry()

        async def on_update(event, data):
            print(data["role_id"], data["feature"], data["enabled"])

        subscription = registry.subscribe(HookEvent.ON_ROLE_FEATURE_UPDATE, on_update)
        await registry.trigger(HookEvent.ON_ROLE_FEATURE_UPDATE, {...})
        subscription.dispose()
    """

    def __init__(self) -> None:
        self._hooks: dict[str, list[RegisteredHook]] = {}
        self._hook_map: dict[str, RegisteredHook] = {}
        self._counter = itertools.count(1)

    def subscribe(
        self,
        event: str,
        callback: Callable,
        priority: int = 0,
    ) -> Subscription:
        """Register a callback for an event.

        Args:
            event: Hook event name (see ``HookEvent``).
            callback: Sync or async callable accepting ``(event, data)``.
            priority: Higher priority callbacks run first. Callbacks with
                the same priority run in registration order.

        Returns:
            Subscription handle used to deregister the callback.
        """
        hook_id = f"hook_{uuid.uuid4().hex[:12]}"
        hook = RegisteredHook(
            id=hook_id,
            event=event,
            callback=callback,
            priority=priority,
            registration_order=next(self._counter),
        )
        self._hooks.setdefault(event, []).append(hook)
        self._hook_map[hook_id] = hook

        logger.debug("Hook registered", hook_id=hook_id, hook_event=event, priority=priority)

        return Subscription(self, hook_id, event)

    def unsubscribe(self, hook_id: str) -> bool:
        """Remove a registered hook.

        Args:
            hook_id: The ID carried by the Subscription handle.

        Returns:
            True if the hook was removed, False if it was not registered.
        """
        hook = self._hook_map.pop(hook_id, None)
        if hook is None:
            logger.warning("Hook not found for unsubscribe", hook_id=hook_id)
            return False

        remaining = [h for h in self._hooks.get(hook.event, []) if h.id != hook_id]
        if remaining:
            self._hooks[hook.event] = remaining
        else:
            self._hooks.pop(hook.event, None)

        logger.debug("Hook unregistered", hook_id=hook_id, hook_event=hook.event)
        return True

    async def trigger(self, event: str, data: Optional[dict[str, Any]] = None) -> DispatchResult:
        """Deliver an event to every subscriber.

        Subscribers run sequentially in priority order. Exceptions raised by
        a subscriber are logged and collected; the remaining subscribers
        still run.

        Args:
            event: Hook event name.
            data: Payload handed to each callback.

        Returns:
            DispatchResult with the delivery count and subscriber errors.
        """
        result = DispatchResult()
        hooks = sorted(
            self._hooks.get(event, []),
            key=lambda h: (-h.priority, h.registration_order),
        )
        if not hooks:
            return result

        logger.debug("Triggering hooks", hook_event=event, hook_count=len(hooks))

        for hook in hooks:
            try:
                outcome = hook.callback(event, data)
                if asyncio.iscoroutine(outcome):
                    await outcome
                result.delivered += 1
            except Exception as e:
                logger.error(
                    "Hook execution failed",
                    hook_id=hook.id,
                    hook_event=event,
                    error=str(e),
                )
                result.errors.append(f"Hook {hook.id} failed: {e}")

        return result

    def get_hooks_for_event(self, event: str) -> list[RegisteredHook]:
        """Get all hooks registered for an event."""
        return self._hooks.get(event, []).copy()

    def subscriber_count(self, event: Optional[str] = None) -> int:
        """Count registered hooks, for one event or overall."""
        if event is not None:
            return len(self._hooks.get(event, []))
        return len(self._hook_map)

    def clear(self) -> int:
        """Remove every registered hook.

        Returns:
            Number of hooks removed.
        """
        count = len(self._hook_map)
        self._hooks.clear()
        self._hook_map.clear()
        return count
