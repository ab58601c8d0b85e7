"""Unit tests for FeatureVisibilityManager."""

import asyncio

import pytest
import pytest_asyncio

from expense_rbac.core.hooks import HookEvent
from expense_rbac.domain.entities.feature import (
    BulkOperation,
    Feature,
    FeatureCategory,
    FeatureVisibility,
)
from expense_rbac.domain.entities.role import RoleInput
from expense_rbac.domain.exceptions import (
    BulkOperationError,
    CategoryNotFoundError,
    FeatureChangeError,
    PersistenceError,
    RoleNotFoundError,
)
from expense_rbac.domain.services.feature_catalog import FeatureDependencyGraph
from expense_rbac.domain.services.feature_visibility_service import FeatureVisibilityManager

ALL_ROLE_IDS = ["administrator-id", "manager-id", "teacher-id", "account_officer-id"]

# A catalog where the Expense Manager is optional, so disabling it cascades.
CASCADE_GRAPH = FeatureDependencyGraph(
    (
        FeatureCategory(
            id="apps",
            name="Apps",
            description="",
            features=(
                Feature(
                    id="expenses",
                    name="Expense Manager",
                    description="",
                    app_id="expenses",
                    dependents=("analytics",),
                ),
                Feature(
                    id="analytics",
                    name="Analytics Dashboard",
                    description="",
                    app_id="expenses",
                    dependencies=("expenses",),
                    dependents=("forecasts",),
                ),
                Feature(
                    id="forecasts",
                    name="Forecasts",
                    description="",
                    app_id="expenses",
                    dependencies=("analytics",),
                ),
            ),
        ),
        FeatureCategory(
            id="shell",
            name="Shell",
            description="",
            features=(
                Feature(
                    id="navigation",
                    name="Navigation Menu",
                    description="",
                    app_id="shell",
                    is_core=True,
                ),
            ),
        ),
    )
)


@pytest_asyncio.fixture
async def cascade(store, role_service, events, settings):
    """Manager over CASCADE_GRAPH where the manager role has expenses and analytics."""
    store.visibility["manager-id"] = {
        feature_id: FeatureVisibility(role_id="manager-id", feature_id=feature_id, app_id="expenses")
        for feature_id in ("expenses", "analytics")
    }
    manager = FeatureVisibilityManager(
        store, role_service, graph=CASCADE_GRAPH, events=events, settings=settings
    )
    await manager.load()
    store.writes.clear()
    yield manager
    manager.queue.cancel()


class TestLoad:
    """Tests for loading and core feature seeding."""

    @pytest.mark.asyncio
    async def test_matrix_reflects_store(self, visibility):
        assert visibility.active_features("teacher-id") == frozenset(
            {"expenses", "settings", "navigation", "notifications", "themes"}
        )
        assert visibility.is_feature_active("manager-id", "analytics") is True
        assert visibility.is_feature_active("teacher-id", "analytics") is False

    @pytest.mark.asyncio
    async def test_missing_core_features_are_seeded(self, store, role_service, settings):
        store.add_role("clerk", ["expense_read"], role_id="clerk-id")
        manager = FeatureVisibilityManager(store, role_service, settings=settings)

        await manager.load()

        assert manager.active_features("clerk-id") == frozenset(
            {"expenses", "settings", "navigation"}
        )
        kind, entries = store.writes[-1]
        assert kind == "bulk"
        assert sorted(entries) == [
            ("clerk-id", "expenses", True),
            ("clerk-id", "navigation", True),
            ("clerk-id", "settings", True),
        ]

    @pytest.mark.asyncio
    async def test_new_role_receives_core_features(self, visibility, role_service, store):
        role = await role_service.create_role(
            RoleInput(name="Clerk", description="Data entry", permissions=["expense_write"])
        )

        assert visibility.active_features(role.id) == frozenset(
            {"expenses", "settings", "navigation"}
        )
        assert store.active(role.id) == {"expenses", "settings", "navigation"}

    @pytest.mark.asyncio
    async def test_deleted_role_state_is_dropped(self, visibility, role_service):
        role = await role_service.create_role(
            RoleInput(name="Clerk", description="Data entry", permissions=["expense_write"])
        )
        visibility.add_pending_change(role.id, "themes", True)

        await role_service.delete_role(role.id)

        assert role.id not in visibility.matrix()
        assert visibility.pending_changes(role.id) == {}


class TestUpdateRoleFeatures:
    """Tests for single feature changes."""

    @pytest.mark.asyncio
    async def test_enable_feature(self, visibility, store):
        result = await visibility.update_role_features("teacher-id", "charts", True)

        assert result.success is True
        assert result.affected_users == 0
        assert result.cascaded == ()
        assert visibility.is_feature_active("teacher-id", "charts") is True
        assert store.writes == [("single", [("teacher-id", "charts", True)])]

    @pytest.mark.asyncio
    async def test_disable_feature_reports_affected_users(self, visibility, store):
        result = await visibility.update_role_features("manager-id", "charts", False)

        assert result.affected_users == 2
        assert result.warnings == ("This will affect 2 users",)
        assert store.active("manager-id") == set(visibility.active_features("manager-id"))

    @pytest.mark.asyncio
    async def test_core_feature_stays_active(self, visibility, store):
        for feature_id in ("expenses", "settings", "navigation"):
            with pytest.raises(FeatureChangeError, match="Cannot disable core functionality"):
                await visibility.update_role_features("manager-id", feature_id, False)

        assert {"expenses", "settings", "navigation"} <= visibility.active_features("manager-id")
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_admin_only_feature_is_gated(self, visibility):
        with pytest.raises(FeatureChangeError) as exc_info:
            await visibility.update_role_features("manager-id", "user_management", True)

        assert exc_info.value.message == (
            "Admin-only features cannot be enabled for non-administrator roles"
        )
        assert exc_info.value.result.is_valid is False
        assert visibility.is_feature_active("manager-id", "user_management") is False

    @pytest.mark.asyncio
    async def test_admin_only_feature_for_administrator(self, visibility):
        await visibility.update_role_features("administrator-id", "audit_logs", False)
        await visibility.update_role_features("administrator-id", "audit_logs", True)

        assert visibility.is_feature_active("administrator-id", "audit_logs") is True

    @pytest.mark.asyncio
    async def test_unknown_role(self, visibility):
        with pytest.raises(RoleNotFoundError):
            await visibility.update_role_features("missing-id", "themes", True)

    @pytest.mark.asyncio
    async def test_write_failure_restores_previous_state(self, visibility, store):
        before = visibility.active_features("manager-id")
        store.fail_writes = True

        with pytest.raises(PersistenceError):
            await visibility.update_role_features("manager-id", "charts", False)

        assert visibility.active_features("manager-id") == before
        assert visibility.get_visibility("manager-id")["charts"].is_active is True

    @pytest.mark.asyncio
    async def test_publishes_role_update(self, visibility):
        received = []
        subscription = visibility.subscribe(
            HookEvent.ON_ROLE_FEATURE_UPDATE,
            lambda event, data: received.append((event, data)),
        )

        await visibility.update_role_features("teacher-id", "charts", True)
        subscription.dispose()
        await visibility.update_role_features("teacher-id", "charts", False)

        assert received == [
            (
                "roleUpdate",
                {"role_id": "teacher-id", "feature": "charts", "enabled": True, "cascaded": []},
            )
        ]

    @pytest.mark.asyncio
    async def test_validate_feature_change_without_user_count(self, visibility):
        result = await visibility.validate_feature_change(
            "manager-id", "charts", False, check_affected_users=False
        )

        assert result.is_valid is True
        assert result.warnings == ()


class TestCascadingDeactivation:
    """Disabling a feature deactivates its active dependents."""

    @pytest.mark.asyncio
    async def test_disable_cascades_to_dependents(self, cascade, store):
        result = await cascade.update_role_features("manager-id", "expenses", False)

        assert "Disabling Expense Manager will also disable Analytics Dashboard" in result.warnings
        assert result.cascaded == ("analytics",)
        assert "analytics" not in cascade.active_features("manager-id")
        assert "expenses" not in cascade.active_features("manager-id")
        assert store.writes == [
            (
                "bulk",
                [("manager-id", "expenses", False), ("manager-id", "analytics", False)],
            )
        ]

    @pytest.mark.asyncio
    async def test_requires_confirmation(self, cascade):
        result = await cascade.validate_feature_change("manager-id", "expenses", False)

        assert result.requires_confirmation is True

    @pytest.mark.asyncio
    async def test_cascade_is_transitive(self, cascade):
        await cascade.update_role_features("manager-id", "forecasts", True)

        result = await cascade.update_role_features("manager-id", "expenses", False)

        assert result.cascaded == ("analytics", "forecasts")
        assert cascade.active_features("manager-id") == frozenset({"navigation"})

    @pytest.mark.asyncio
    async def test_enable_requires_dependencies(self, cascade):
        await cascade.update_role_features("manager-id", "expenses", False)

        with pytest.raises(FeatureChangeError, match="requires Expense Manager access"):
            await cascade.update_role_features("manager-id", "analytics", True)

    @pytest.mark.asyncio
    async def test_failed_cascade_is_reverted_in_full(self, cascade, store):
        store.fail_writes = True

        with pytest.raises(PersistenceError):
            await cascade.update_role_features("manager-id", "expenses", False)

        assert {"expenses", "analytics"} <= cascade.active_features("manager-id")

    @pytest.mark.asyncio
    async def test_cascade_never_reaches_core_feature(self, store, role_service, events, settings):
        graph = FeatureDependencyGraph(
            (
                FeatureCategory(
                    id="base",
                    name="Base",
                    description="",
                    features=(
                        Feature(
                            id="reports",
                            name="Reports",
                            description="",
                            app_id="expenses",
                            dependents=("ledger",),
                        ),
                        Feature(
                            id="ledger",
                            name="Ledger",
                            description="",
                            app_id="expenses",
                            dependencies=("reports",),
                            is_core=True,
                        ),
                    ),
                ),
            )
        )
        manager = FeatureVisibilityManager(
            store, role_service, graph=graph, events=events, settings=settings
        )
        await manager.load()
        await manager.update_role_features("manager-id", "reports", True)
        store.writes.clear()

        with pytest.raises(FeatureChangeError, match="Cannot disable core functionality"):
            await manager.update_role_features("manager-id", "reports", False)

        assert {"reports", "ledger"} <= manager.active_features("manager-id")
        assert store.writes == []
        manager.queue.cancel()


class TestToggleQueue:
    """Tests for debounced toggles."""

    @pytest.mark.asyncio
    async def test_rapid_toggles_write_once(self, visibility, store):
        values = [visibility.toggle_feature("manager-id", "charts") for _ in range(3)]

        outcomes = await visibility.flush()

        assert values == [False, True, False]
        assert len(outcomes) == 1
        assert outcomes[0].applied is True
        assert store.writes == [("single", [("manager-id", "charts", False)])]
        assert visibility.is_feature_active("manager-id", "charts") is False

    @pytest.mark.asyncio
    async def test_even_toggle_count_keeps_state(self, visibility, store):
        for _ in range(4):
            visibility.toggle_feature("manager-id", "charts")

        await visibility.flush()

        assert store.writes == [("single", [("manager-id", "charts", True)])]
        assert visibility.is_feature_active("manager-id", "charts") is True

    @pytest.mark.asyncio
    async def test_queue_drains_after_quiet_period(self, visibility, store):
        visibility.toggle_feature("teacher-id", "charts")

        await asyncio.sleep(0.3)

        assert len(visibility.queue) == 0
        assert visibility.is_feature_active("teacher-id", "charts") is True
        assert len(store.writes) == 1

    @pytest.mark.asyncio
    async def test_rejected_toggle_is_reported(self, visibility):
        visibility.toggle_feature("manager-id", "navigation")

        outcomes = await visibility.flush()

        assert outcomes[0].applied is False
        assert outcomes[0].error == "Cannot disable core functionality"
        assert visibility.is_feature_active("manager-id", "navigation") is True

    @pytest.mark.asyncio
    async def test_unknown_feature(self, visibility):
        with pytest.raises(FeatureChangeError, match="Feature not found"):
            visibility.toggle_feature("manager-id", "teleport")

    @pytest.mark.asyncio
    async def test_close_flushes_and_detaches(self, visibility, events):
        visibility.toggle_feature("teacher-id", "charts")

        outcomes = await visibility.close()

        assert [o.feature_id for o in outcomes] == ["charts"]
        assert events.subscriber_count(HookEvent.ON_ROLE_CREATE) == 0


class TestBulkUpdateFeatures:
    """Tests for category-wide operations."""

    @pytest.mark.asyncio
    async def test_disabling_core_category_for_everyone_is_rejected(self, visibility, store):
        before = visibility.matrix()
        operation = BulkOperation(role_ids=ALL_ROLE_IDS, category_id="core-apps", action="disable")

        with pytest.raises(BulkOperationError, match="Cannot disable core features for all users"):
            await visibility.bulk_update_features(operation)

        assert visibility.matrix() == before
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_enable_category(self, visibility, events):
        received = []
        events.subscribe(
            HookEvent.ON_BULK_OPERATION_COMPLETE, lambda event, data: received.append(data)
        )
        operation = BulkOperation(
            role_ids=["teacher-id", "account_officer-id"],
            category_id="dashboard-components",
            action="enable",
        )

        result = await visibility.bulk_update_features(operation)

        assert result.success is True
        assert result.succeeded == [
            ("teacher-id", "analytics"),
            ("teacher-id", "charts"),
            ("account_officer-id", "analytics"),
        ]
        assert result.skipped == [("account_officer-id", "charts")]
        assert result.warnings == ["This will affect 4 users"]
        assert received == [
            {
                "category_id": "dashboard-components",
                "action": "enable",
                "succeeded": 3,
                "skipped": 1,
                "failed": 0,
            }
        ]

    @pytest.mark.asyncio
    async def test_failures_are_reported_per_item(self, visibility):
        operation = BulkOperation(
            role_ids=["manager-id"], category_id="user-interface", action="disable"
        )

        result = await visibility.bulk_update_features(operation)

        assert result.success is False
        assert result.succeeded == [
            ("manager-id", "notifications"),
            ("manager-id", "themes"),
        ]
        assert len(result.failed) == 1
        assert result.failed[0].feature_id == "navigation"
        assert result.failed[0].error == "Cannot disable core functionality"
        assert visibility.is_feature_active("manager-id", "navigation") is True

    @pytest.mark.asyncio
    async def test_admin_only_category_for_non_admin(self, visibility):
        operation = BulkOperation(
            role_ids=["manager-id"], category_id="administrative", action="enable"
        )

        result = await visibility.bulk_update_features(operation)

        assert [f.feature_id for f in result.failed] == [
            "user_management",
            "system_config",
            "audit_logs",
        ]
        assert result.succeeded == []

    @pytest.mark.asyncio
    async def test_unknown_category(self, visibility):
        operation = BulkOperation(role_ids=["manager-id"], category_id="nope", action="enable")

        with pytest.raises(CategoryNotFoundError):
            await visibility.bulk_update_features(operation)


class TestBulkOperationImpact:
    """Tests for the read-only impact projection."""

    @pytest.mark.asyncio
    async def test_large_impact_warns(self, visibility, store):
        operation = BulkOperation(
            role_ids=["manager-id", "account_officer-id"],
            category_id="dashboard-components",
            action="disable",
        )

        impact = await visibility.calculate_bulk_operation_impact(operation)

        assert impact.affected_users == 6
        assert impact.features_changed == 2
        assert impact.warnings == ("This will affect 6 users across 2 roles",)
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_nothing_to_change(self, visibility):
        operation = BulkOperation(
            role_ids=["manager-id"], category_id="dashboard-components", action="enable"
        )

        impact = await visibility.calculate_bulk_operation_impact(operation)

        assert impact.affected_users == 2
        assert impact.features_changed == 0
        assert impact.warnings == ()


class TestPendingChangesAndPreview:
    """Tests for speculative changes and interface previews."""

    @pytest.mark.asyncio
    async def test_preview_committed_state(self, visibility):
        preview = visibility.preview_role_interface("teacher-id")

        assert preview.available_features == (
            "expenses",
            "settings",
            "navigation",
            "themes",
            "notifications",
        )
        assert preview.feature_count == 5
        assert preview.accessible_apps == ("expenses", "settings", "shell")
        assert preview.accessibility_level == "standard"
        assert preview.warnings == ()
        assert [item.id for item in preview.navigation_structure["user-interface"]] == [
            "navigation",
            "themes",
            "notifications",
        ]
        assert "dashboard-components" not in preview.navigation_structure

    @pytest.mark.asyncio
    async def test_pending_changes_are_previewed_not_saved(self, visibility, store):
        visibility.add_pending_change("teacher-id", "analytics", True)

        preview = visibility.preview_role_interface("teacher-id")

        assert preview.accessibility_level == "full"
        assert "analytics" in preview.available_features
        assert visibility.is_feature_active("teacher-id", "analytics") is False
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_preview_warnings(self, visibility):
        for feature_id in ("expenses", "settings", "themes", "notifications", "navigation"):
            visibility.add_pending_change("teacher-id", feature_id, False)

        preview = visibility.preview_role_interface("teacher-id")

        assert preview.available_features == ()
        assert preview.accessibility_level == "limited"
        assert preview.warnings == (
            "Limited feature access may impact user experience",
            "Navigation disabled - users may have difficulty accessing features",
        )

    @pytest.mark.asyncio
    async def test_commit_pending_changes(self, visibility):
        visibility.add_pending_change("teacher-id", "charts", True)
        visibility.add_pending_change("teacher-id", "analytics", True)
        visibility.add_pending_change("teacher-id", "themes", False)

        result = await visibility.commit_pending_changes("teacher-id")

        assert result.succeeded == [
            ("teacher-id", "themes"),
            ("teacher-id", "analytics"),
            ("teacher-id", "charts"),
        ]
        assert visibility.pending_changes("teacher-id") == {}
        assert {"analytics", "charts"} <= visibility.active_features("teacher-id")
        assert "themes" not in visibility.active_features("teacher-id")

    @pytest.mark.asyncio
    async def test_commit_reports_rejected_changes(self, visibility):
        visibility.add_pending_change("teacher-id", "system_config", True)

        result = await visibility.commit_pending_changes("teacher-id")

        assert result.success is False
        assert result.failed[0].feature_id == "system_config"

    @pytest.mark.asyncio
    async def test_discard_pending_changes(self, visibility):
        visibility.add_pending_change("teacher-id", "charts", True)
        visibility.add_pending_change("teacher-id", "themes", False)

        assert visibility.discard_pending_changes("teacher-id") == 2
        assert visibility.pending_changes("teacher-id") == {}

    @pytest.mark.asyncio
    async def test_pending_change_for_unknown_feature(self, visibility):
        with pytest.raises(FeatureChangeError):
            visibility.add_pending_change("teacher-id", "teleport", True)
