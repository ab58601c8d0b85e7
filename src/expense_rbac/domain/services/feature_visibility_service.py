"""Feature visibility matrix manager.

Holds, per role, the set of features that are currently active (visible and
enabled), plus speculative pending changes used for previews. Single
changes are validated, applied optimistically, persisted, and published as
``roleUpdate`` events. A failed write restores the role's previous active
set before the error is raised.
"""

from dataclasses import replace
from typing import Any, Callable, Iterable, Optional

from expense_rbac.core.config import Settings, get_settings
from expense_rbac.core.hooks import HookEvent, HookRegistry, Subscription
from expense_rbac.core.logging import get_logger
from expense_rbac.domain.entities.feature import BulkOperation, Feature, FeatureVisibility
from expense_rbac.domain.entities.validation import FeatureChangeResult
from expense_rbac.domain.entities.visibility_results import (
    BulkItemFailure,
    BulkOperationImpact,
    BulkOperationResult,
    FeatureUpdateResult,
    InterfacePreview,
    NavigationItem,
    ToggleOutcome,
)
from expense_rbac.domain.exceptions import (
    AccessControlError,
    BulkOperationError,
    CategoryNotFoundError,
    FeatureChangeError,
    PersistenceError,
    RoleNotFoundError,
)
from expense_rbac.domain.services.feature_catalog import (
    FeatureDependencyGraph,
    default_feature_graph,
)
from expense_rbac.domain.services.role_data_store import RoleDataStore
from expense_rbac.domain.services.role_service import RoleService
from expense_rbac.domain.services.role_validator import FeatureChangeValidator
from expense_rbac.domain.services.toggle_queue import ToggleQueue

logger = get_logger(__name__)

PRIMARY_APP_FEATURE = "expenses"
ANALYTICS_FEATURE = "analytics"
NAVIGATION_FEATURE = "navigation"


class FeatureVisibilityManager:
    """Per-role feature activation state.

    Args:
        store: Persisted visibility store.
        roles: Role service used for role lookups and user counts.
        graph: Feature catalog.
        events: Registry events are published to; a private one is created
            when omitted.
        settings: Application settings; defaults to ``get_settings()``.
    """

    def __init__(
        self,
        store: RoleDataStore,
        roles: RoleService,
        graph: FeatureDependencyGraph = default_feature_graph,
        events: Optional[HookRegistry] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.store = store
        self.roles = roles
        self.graph = graph
        self.events = events if events is not None else HookRegistry()
        self.settings = settings or get_settings()
        self.validator = FeatureChangeValidator(graph, self.settings.administrator_role_name)

        self._matrix: dict[str, set[str]] = {}
        self._entries: dict[str, dict[str, FeatureVisibility]] = {}
        self._pending: dict[str, dict[str, bool]] = {}
        self._loaded = False

        self.queue = ToggleQueue(self._apply_toggle, self.settings.toggle_debounce_seconds)
        self._subscriptions = [
            self.events.subscribe(HookEvent.ON_ROLE_CREATE, self._on_role_created),
            self.events.subscribe(HookEvent.ON_ROLE_DELETE, self._on_role_deleted),
        ]

    @property
    def loaded(self) -> bool:
        return self._loaded

    # =========================================================================
    # Loading and lifecycle
    # =========================================================================

    async def load(self) -> None:
        """Load the visibility matrix and seed missing core features.

        Every role known to the role service ends up with every core feature
        active; missing entries are written in one bulk upsert.

        Raises:
            PersistenceError: If the store cannot be read or written.
        """
        matrix = await self.store.get_feature_visibility_matrix()
        await self.roles.ensure_loaded()

        self._entries = {role_id: dict(entries) for role_id, entries in matrix.items()}
        self._matrix = {
            role_id: {fid for fid, entry in entries.items() if entry.is_active}
            for role_id, entries in matrix.items()
        }

        seeded: list[FeatureVisibility] = []
        for role_id in self.roles.role_ids:
            seeded.extend(self._missing_core_entries(role_id))
        if seeded:
            await self.store.bulk_upsert_feature_visibility(seeded)
            for entry in seeded:
                self._record(entry)

        self._loaded = True
        logger.info(
            "Feature visibility loaded",
            role_count=len(self._matrix),
            seeded_core_entries=len(seeded),
        )

    async def seed_core_features(self, role_id: str) -> int:
        """Activate every missing core feature for one role.

        Returns:
            Number of entries written.
        """
        entries = self._missing_core_entries(role_id)
        if entries:
            await self.store.bulk_upsert_feature_visibility(entries)
            for entry in entries:
                self._record(entry)
            logger.info("Core features seeded", role_id=role_id, feature_count=len(entries))
        return len(entries)

    def forget_role(self, role_id: str) -> None:
        """Drop every piece of local state held for a role."""
        self._matrix.pop(role_id, None)
        self._entries.pop(role_id, None)
        self._pending.pop(role_id, None)
        dropped = self.queue.discard(role_id)
        logger.debug("Role visibility state dropped", role_id=role_id, dropped_toggles=dropped)

    def reset(self) -> None:
        """Forget all loaded state and queued toggles."""
        self.queue.cancel()
        self._matrix = {}
        self._entries = {}
        self._pending = {}
        self._loaded = False

    async def close(self) -> list[ToggleOutcome]:
        """Write queued toggles and detach from the event registry."""
        outcomes = await self.queue.flush()
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions = []
        return outcomes

    async def _on_role_created(self, event: str, data: dict[str, Any]) -> None:
        await self.seed_core_features(data["role_id"])

    def _on_role_deleted(self, event: str, data: dict[str, Any]) -> None:
        self.forget_role(data["role_id"])

    def _missing_core_entries(self, role_id: str) -> list[FeatureVisibility]:
        active = self._matrix.get(role_id, set())
        return [
            self._entry_for(role_id, feature, True)
            for feature in self.graph.core_features
            if feature.id not in active
        ]

    def _entry_for(self, role_id: str, feature: Feature, enabled: bool) -> FeatureVisibility:
        """Visibility entry for a target state, keeping any stored configuration."""
        existing = self._entries.get(role_id, {}).get(feature.id)
        if existing is None:
            return FeatureVisibility.for_state(role_id, feature, enabled)
        return replace(existing, is_visible=enabled, is_enabled=enabled)

    def _record(self, entry: FeatureVisibility) -> None:
        self._entries.setdefault(entry.role_id, {})[entry.feature_id] = entry
        active = self._matrix.setdefault(entry.role_id, set())
        if entry.is_active:
            active.add(entry.feature_id)
        else:
            active.discard(entry.feature_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def active_features(self, role_id: str) -> frozenset[str]:
        return frozenset(self._matrix.get(role_id, ()))

    def is_feature_active(self, role_id: str, feature_id: str) -> bool:
        return feature_id in self._matrix.get(role_id, ())

    def get_visibility(self, role_id: str) -> dict[str, FeatureVisibility]:
        """Stored visibility entries for a role, keyed by feature id."""
        return dict(self._entries.get(role_id, {}))

    def matrix(self) -> dict[str, frozenset[str]]:
        """Active feature ids for every role with visibility state."""
        return {role_id: frozenset(active) for role_id, active in self._matrix.items()}

    # =========================================================================
    # Single changes
    # =========================================================================

    async def validate_feature_change(
        self,
        role_id: str,
        feature_id: str,
        enabled: bool,
        check_affected_users: Optional[bool] = None,
    ) -> FeatureChangeResult:
        """Validate a change against the role's current active set.

        Args:
            role_id: Role to change.
            feature_id: Feature to change.
            enabled: Target state.
            check_affected_users: Add the affected-users warning. Defaults to
                the ``check_affected_users`` setting.
        """
        await self.roles.ensure_loaded()
        if check_affected_users is None:
            check_affected_users = self.settings.check_affected_users

        affected = self.roles.user_count(role_id) if check_affected_users else None
        return self.validator.validate_feature_change(
            self.roles.get_role(role_id),
            feature_id,
            enabled,
            self._matrix.get(role_id, set()),
            affected_users=affected,
        )

    async def update_role_features(
        self,
        role_id: str,
        feature_id: str,
        enabled: bool,
    ) -> FeatureUpdateResult:
        """Activate or deactivate a feature for a role.

        Disabling a feature also deactivates every active dependent, directly
        or transitively. Local state is updated before the write; if the
        write fails the role's previous active set is restored.

        Raises:
            RoleNotFoundError: If the role is unknown.
            FeatureChangeError: If validation rejects the change.
            PersistenceError: If the write fails.
        """
        result = await self.validate_feature_change(role_id, feature_id, enabled)
        if self.roles.get_role(role_id) is None:
            raise RoleNotFoundError(role_id)
        if not result.is_valid:
            raise FeatureChangeError(result.errors[0], result)

        for warning in result.warnings:
            logger.warning(
                "Feature change warning",
                role_id=role_id,
                feature_id=feature_id,
                warning=warning,
            )

        feature = self.graph.get_feature(feature_id)
        snapshot_active = set(self._matrix.get(role_id, set()))
        snapshot_entries = dict(self._entries.get(role_id, {}))

        cascaded: list[str] = []
        if not enabled:
            cascaded = [d.id for d in self.graph.active_dependents(feature_id, snapshot_active)]

        written = [self._entry_for(role_id, feature, enabled)]
        written.extend(
            self._entry_for(role_id, self.graph.get_feature(dependent_id), False)
            for dependent_id in cascaded
        )
        for entry in written:
            self._record(entry)

        try:
            if cascaded:
                await self.store.bulk_upsert_feature_visibility(written)
            else:
                await self.store.upsert_feature_visibility(written[0])
        except Exception as e:
            self._matrix[role_id] = snapshot_active
            self._entries[role_id] = snapshot_entries
            logger.error(
                "Feature visibility write failed, local change reverted",
                role_id=role_id,
                feature_id=feature_id,
                enabled=enabled,
                error=str(e),
            )
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError(f"Failed to update feature visibility: {e}") from e

        self._pending.get(role_id, {}).pop(feature_id, None)
        affected_users = self.roles.user_count(role_id)

        logger.info(
            "Feature visibility updated",
            role_id=role_id,
            feature_id=feature_id,
            enabled=enabled,
            cascaded=cascaded,
            affected_users=affected_users,
        )
        await self.events.trigger(
            HookEvent.ON_ROLE_FEATURE_UPDATE,
            {
                "role_id": role_id,
                "feature": feature_id,
                "enabled": enabled,
                "cascaded": list(cascaded),
            },
        )

        return FeatureUpdateResult(
            success=True,
            affected_users=affected_users,
            warnings=tuple(result.warnings),
            cascaded=tuple(cascaded),
        )

    def toggle_feature(self, role_id: str, feature_id: str) -> bool:
        """Queue the opposite of a feature's current state.

        The current state is the most recently queued value for the pair if
        one is waiting, otherwise the committed state, so any number of
        toggles inside one quiet period ends at the right parity.

        Returns:
            The queued target state.

        Raises:
            FeatureChangeError: If the feature is not in the catalog.
        """
        if self.graph.get_feature(feature_id) is None:
            raise FeatureChangeError("Feature not found")

        queued = self.queue.queued_value(role_id, feature_id)
        current = queued if queued is not None else self.is_feature_active(role_id, feature_id)
        enabled = not current
        self.queue.enqueue(role_id, feature_id, enabled)
        return enabled

    async def flush(self) -> list[ToggleOutcome]:
        """Write every queued toggle now."""
        return await self.queue.flush()

    async def _apply_toggle(self, role_id: str, feature_id: str, enabled: bool) -> None:
        await self.update_role_features(role_id, feature_id, enabled)

    # =========================================================================
    # Bulk operations
    # =========================================================================

    async def bulk_update_features(self, operation: BulkOperation) -> BulkOperationResult:
        """Enable or disable a whole category for several roles.

        Best-effort: each ``(role, feature)`` pair is applied in turn and a
        failing pair does not stop the rest. Features are ordered so that
        dependencies are enabled before their dependents, and dependents
        are disabled before what they depend on. Pairs already in the target
        state are skipped.

        Raises:
            BulkOperationError: If the operation as a whole is rejected.
            CategoryNotFoundError: If the category does not exist.
        """
        await self.roles.ensure_loaded()

        validation = self.validator.validate_bulk_operation(operation, self.roles.role_ids)
        if not validation.is_valid:
            raise BulkOperationError(validation.errors[0], validation)

        category = self.graph.get_category(operation.category_id)
        if category is None:
            raise CategoryNotFoundError(operation.category_id)

        enabled = operation.enabled
        if enabled:
            ordered = self.graph.dependency_order(category.feature_ids)
        else:
            ordered = self.graph.dependents_first_order(category.feature_ids)

        result = await self._apply_pairs(
            [(role_id, feature_id, enabled)
             for role_id in dict.fromkeys(operation.role_ids)
             for feature_id in ordered]
        )

        logger.info(
            "Bulk feature operation completed",
            category_id=operation.category_id,
            action=operation.action.value,
            role_count=len(set(operation.role_ids)),
            succeeded=len(result.succeeded),
            skipped=len(result.skipped),
            failed=len(result.failed),
        )
        await self.events.trigger(
            HookEvent.ON_BULK_OPERATION_COMPLETE,
            {
                "category_id": operation.category_id,
                "action": operation.action.value,
                "succeeded": len(result.succeeded),
                "skipped": len(result.skipped),
                "failed": len(result.failed),
            },
        )
        return result

    async def _apply_pairs(
        self,
        changes: Iterable[tuple[str, str, bool]],
    ) -> BulkOperationResult:
        result = BulkOperationResult()
        for role_id, feature_id, enabled in changes:
            if self.is_feature_active(role_id, feature_id) == enabled:
                result.skipped.append((role_id, feature_id))
                continue
            try:
                update = await self.update_role_features(role_id, feature_id, enabled)
            except AccessControlError as e:
                result.failed.append(BulkItemFailure(role_id, feature_id, e.message))
            else:
                result.succeeded.append((role_id, feature_id))
                result.warnings.extend(update.warnings)
        return result

    async def calculate_bulk_operation_impact(
        self,
        operation: BulkOperation,
    ) -> BulkOperationImpact:
        """Project what a bulk operation would touch without changing anything.

        ``features_changed`` counts the category's features whose state
        differs from the target for at least one of the roles.

        Raises:
            CategoryNotFoundError: If the category does not exist.
        """
        await self.roles.ensure_loaded()

        category = self.graph.get_category(operation.category_id)
        if category is None:
            raise CategoryNotFoundError(operation.category_id)

        role_ids = list(dict.fromkeys(operation.role_ids))
        affected_users = sum(self.roles.user_count(role_id) for role_id in role_ids)
        features_changed = sum(
            1
            for feature_id in category.feature_ids
            if any(self.is_feature_active(r, feature_id) != operation.enabled for r in role_ids)
        )

        warnings: list[str] = []
        if affected_users > self.settings.bulk_impact_warning_threshold:
            warnings.append(
                f"This will affect {affected_users} users across {len(role_ids)} roles"
            )

        return BulkOperationImpact(
            affected_users=affected_users,
            features_changed=features_changed,
            warnings=tuple(warnings),
        )

    # =========================================================================
    # Pending changes and preview
    # =========================================================================

    def add_pending_change(self, role_id: str, feature_id: str, enabled: bool) -> None:
        """Record a speculative change for previews; nothing is persisted."""
        if self.graph.get_feature(feature_id) is None:
            raise FeatureChangeError("Feature not found")
        self._pending.setdefault(role_id, {})[feature_id] = enabled

    def pending_changes(self, role_id: str) -> dict[str, bool]:
        return dict(self._pending.get(role_id, {}))

    def discard_pending_changes(self, role_id: str) -> int:
        """Drop a role's pending changes.

        Returns:
            Number of changes dropped.
        """
        return len(self._pending.pop(role_id, {}))

    async def commit_pending_changes(self, role_id: str) -> BulkOperationResult:
        """Apply a role's pending changes and clear them.

        Disables are applied first (dependents before what they depend on),
        then enables (dependencies first). Failures are reported per feature.
        """
        changes = self._pending.pop(role_id, {})
        disables = [fid for fid, enabled in changes.items() if not enabled]
        enables = [fid for fid, enabled in changes.items() if enabled]

        ordered = [(role_id, fid, False) for fid in self.graph.dependents_first_order(disables)]
        ordered += [(role_id, fid, True) for fid in self.graph.dependency_order(enables)]

        result = await self._apply_pairs(ordered)
        logger.info(
            "Pending feature changes committed",
            role_id=role_id,
            succeeded=len(result.succeeded),
            skipped=len(result.skipped),
            failed=len(result.failed),
        )
        return result

    def preview_role_interface(self, role_id: str) -> InterfacePreview:
        """Project the role's interface with pending changes applied."""
        preview = set(self._matrix.get(role_id, set()))
        for feature_id, enabled in self._pending.get(role_id, {}).items():
            if enabled:
                preview.add(feature_id)
            else:
                preview.discard(feature_id)

        available = self.graph.in_catalog_order(preview)

        navigation: dict[str, tuple[NavigationItem, ...]] = {}
        for category in self.graph.categories:
            items = tuple(
                NavigationItem(id=feature.id, name=feature.name)
                for feature in category.features
                if feature.id in preview
            )
            if items:
                navigation[category.id] = items

        apps: dict[str, None] = {}
        for feature_id in available:
            apps.setdefault(self.graph.get_feature(feature_id).app_id, None)

        if PRIMARY_APP_FEATURE in preview and ANALYTICS_FEATURE in preview:
            level = "full"
        elif PRIMARY_APP_FEATURE in preview:
            level = "standard"
        else:
            level = "limited"

        warnings = []
        if len(available) < self.settings.preview_min_feature_count:
            warnings.append("Limited feature access may impact user experience")
        if NAVIGATION_FEATURE not in preview:
            warnings.append("Navigation disabled - users may have difficulty accessing features")

        return InterfacePreview(
            role_id=role_id,
            available_features=tuple(available),
            navigation_structure=navigation,
            accessible_apps=tuple(apps),
            feature_count=len(available),
            accessibility_level=level,
            warnings=tuple(warnings),
        )

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, event: str, callback: Callable, priority: int = 0) -> Subscription:
        """Register a callback for a visibility event.

        Returns:
            Subscription whose ``dispose()`` deregisters the callback.
        """
        return self.events.subscribe(event, callback, priority=priority)
