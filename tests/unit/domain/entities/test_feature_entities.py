"""Unit tests for the role and feature entities."""

import pytest

from expense_rbac.domain.entities.feature import (
    BulkAction,
    BulkOperation,
    Feature,
    FeatureCategory,
    FeatureVisibility,
)
from expense_rbac.domain.entities.role import Role, RoleUpdate, role_slug


def _feature(feature_id: str, **kwargs) -> Feature:
    return Feature(id=feature_id, name=feature_id.title(), description="", app_id="app", **kwargs)


class TestFeature:
    def test_self_dependency_rejected(self):
        with pytest.raises(ValueError, match="cannot depend on itself"):
            _feature("charts", dependencies=("charts",))

    def test_id_required(self):
        with pytest.raises(ValueError):
            _feature("")

    def test_category_core_detection(self):
        category = FeatureCategory(
            id="core",
            name="Core",
            description="",
            features=(_feature("navigation", is_core=True), _feature("charts")),
        )

        assert category.has_core_features
        assert category.feature_ids == ["navigation", "charts"]


class TestFeatureVisibility:
    @pytest.mark.parametrize(
        "visible,enabled,expected",
        [(True, True, True), (True, False, False), (False, True, False), (False, False, False)],
    )
    def test_active_needs_visible_and_enabled(self, visible, enabled, expected):
        entry = FeatureVisibility(
            role_id="r1", feature_id="charts", app_id="app", is_visible=visible, is_enabled=enabled
        )
        assert entry.is_active is expected

    def test_for_state_sets_both_flags(self):
        entry = FeatureVisibility.for_state("r1", _feature("charts"), False)

        assert entry.app_id == "app"
        assert not entry.is_visible
        assert not entry.is_enabled


class TestBulkOperation:
    def test_action_coerced_from_string(self):
        operation = BulkOperation(role_ids=["r1"], category_id="core", action="disable")

        assert operation.action is BulkAction.DISABLE
        assert not operation.enabled

    def test_unknown_action_rejected(self):
        with pytest.raises(ValueError):
            BulkOperation(role_ids=["r1"], category_id="core", action="toggle")


class TestRole:
    def test_slug(self):
        assert role_slug("  Account   Officer ") == "account_officer"

    def test_permissions_frozen(self):
        role = Role(id="r1", name="auditor", display_name="Auditor", description="", permissions=["a"])
        assert role.permissions == frozenset({"a"})

    def test_empty_update(self):
        assert RoleUpdate().is_empty()
        assert not RoleUpdate(description="x").is_empty()
