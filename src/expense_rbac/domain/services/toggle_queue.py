"""Debounced toggle queue.

Rapid toggles of the same ``(role, feature)`` pair are coalesced into one
write. Each enqueue re-arms a single timer; when the quiet period passes
without a new enqueue, the queue drains. ``flush()`` drains immediately
and returns the outcome of every write, which is what tests and shutdown
use instead of waiting on the clock.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

from expense_rbac.core.logging import get_logger
from expense_rbac.domain.entities.visibility_results import QueuedToggle, ToggleOutcome

logger = get_logger(__name__)

ApplyToggle = Callable[[str, str, bool], Awaitable[object]]


class ToggleQueue:
    """Last-write-wins queue of pending feature toggles.

    Args:
        apply: Coroutine function writing one ``(role_id, feature_id, enabled)``.
        quiet_period: Seconds without an enqueue before the queue drains.
    """

    def __init__(self, apply: ApplyToggle, quiet_period: float = 1.0) -> None:
        self._apply = apply
        self.quiet_period = quiet_period
        self._entries: list[QueuedToggle] = []
        self._timer: Optional[asyncio.TimerHandle] = None
        self._drain_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def pending(self) -> list[QueuedToggle]:
        return list(self._entries)

    @property
    def armed(self) -> bool:
        return self._timer is not None

    def queued_value(self, role_id: str, feature_id: str) -> Optional[bool]:
        """Most recently queued target state for a pair, if any."""
        for entry in reversed(self._entries):
            if entry.role_id == role_id and entry.feature_id == feature_id:
                return entry.enabled
        return None

    def enqueue(self, role_id: str, feature_id: str, enabled: bool) -> QueuedToggle:
        """Queue a toggle and restart the quiet period.

        Must be called from a running event loop.
        """
        loop = asyncio.get_running_loop()
        entry = QueuedToggle(
            role_id=role_id,
            feature_id=feature_id,
            enabled=enabled,
            timestamp=time.time(),
        )
        self._entries.append(entry)

        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self.quiet_period, self._on_quiet_period)

        logger.debug(
            "Toggle queued",
            role_id=role_id,
            feature_id=feature_id,
            enabled=enabled,
            queue_length=len(self._entries),
        )
        return entry

    def discard(self, role_id: str) -> int:
        """Drop every queued toggle for a role.

        Returns:
            Number of entries dropped.
        """
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.role_id != role_id]
        if not self._entries and self._timer is not None:
            self._timer.cancel()
            self._timer = None
        return before - len(self._entries)

    def cancel(self) -> int:
        """Stop the timer and drop every queued toggle without writing.

        Returns:
            Number of entries dropped.
        """
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        dropped = len(self._entries)
        self._entries = []
        if dropped:
            logger.info("Toggle queue cancelled", dropped=dropped)
        return dropped

    async def flush(self) -> list[ToggleOutcome]:
        """Drain the queue now.

        Waits for a timer-driven drain that is already running, then writes
        whatever is still queued.

        Returns:
            One outcome per coalesced ``(role, feature)`` pair written by this call.
        """
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._drain_task is not None and not self._drain_task.done():
            await asyncio.shield(self._drain_task)
        return await self._drain()

    def _on_quiet_period(self) -> None:
        self._timer = None
        self._drain_task = asyncio.get_running_loop().create_task(self._drain_in_background())

    async def _drain_in_background(self) -> None:
        try:
            await self._drain()
        except Exception as e:
            logger.error("Toggle queue drain failed", error=str(e))

    async def _drain(self) -> list[ToggleOutcome]:
        entries, self._entries = self._entries, []
        if not entries:
            return []

        # role_id -> feature_id -> enabled; later entries overwrite earlier ones
        grouped: dict[str, dict[str, bool]] = {}
        for entry in entries:
            grouped.setdefault(entry.role_id, {})[entry.feature_id] = entry.enabled

        outcomes: list[ToggleOutcome] = []
        for role_id, features in grouped.items():
            for feature_id, enabled in features.items():
                try:
                    await self._apply(role_id, feature_id, enabled)
                except Exception as e:
                    logger.warning(
                        "Queued toggle failed",
                        role_id=role_id,
                        feature_id=feature_id,
                        enabled=enabled,
                        error=str(e),
                    )
                    outcomes.append(ToggleOutcome(role_id, feature_id, enabled, error=str(e)))
                else:
                    outcomes.append(ToggleOutcome(role_id, feature_id, enabled))

        logger.info(
            "Toggle queue drained",
            queued=len(entries),
            written=sum(1 for outcome in outcomes if outcome.applied),
            failed=sum(1 for outcome in outcomes if not outcome.applied),
        )
        return outcomes
