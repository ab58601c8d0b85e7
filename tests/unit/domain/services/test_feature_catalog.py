"""Unit tests for the feature dependency graph."""

import pytest

from expense_rbac.domain.entities.feature import Feature, FeatureCategory
from expense_rbac.domain.services.feature_catalog import (
    FeatureDependencyGraph,
    default_feature_graph,
)


def feature(feature_id: str, dependencies=(), dependents=(), **kwargs) -> Feature:
    return Feature(
        id=feature_id,
        name=feature_id.title(),
        description="",
        app_id=kwargs.pop("app_id", "app"),
        dependencies=tuple(dependencies),
        dependents=tuple(dependents),
        **kwargs,
    )


def graph_of(*features: Feature) -> FeatureDependencyGraph:
    return FeatureDependencyGraph(
        (FeatureCategory(id="all", name="All", description="", features=features),)
    )


class TestDefaultCatalog:
    """The shipped catalog is well formed."""

    def test_catalog_is_consistent(self):
        check = default_feature_graph.validate_feature_dependencies()

        assert check.is_consistent is True
        assert check.has_circular_dependencies is False
        assert check.cycles == ()
        assert check.inconsistencies == ()

    def test_categories_in_order(self):
        assert [c.id for c in default_feature_graph.categories] == [
            "core-apps",
            "dashboard-components",
            "user-interface",
            "administrative",
        ]

    def test_core_features(self):
        assert [f.id for f in default_feature_graph.core_features] == [
            "expenses",
            "settings",
            "navigation",
        ]

    def test_in_catalog_order_drops_unknown_ids(self):
        assert default_feature_graph.in_catalog_order(
            {"audit_logs", "expenses", "bogus", "themes"}
        ) == ["expenses", "themes", "audit_logs"]


class TestDependencyQueries:
    """Tests for missing dependencies and active dependents."""

    def test_missing_dependencies(self):
        missing = default_feature_graph.missing_dependencies("analytics", {"settings"})

        assert [f.id for f in missing] == ["expenses"]

    def test_unknown_dependency_is_reported_as_missing(self):
        graph = graph_of(feature("reports", dependencies=("ledger",)))

        missing = graph.missing_dependencies("reports", set())

        assert [f.id for f in missing] == ["ledger"]

    def test_active_dependents_are_transitive(self):
        graph = graph_of(
            feature("a", dependents=("b",)),
            feature("b", dependencies=("a",), dependents=("c",)),
            feature("c", dependencies=("b",)),
        )

        dependents = graph.active_dependents("a", {"a", "b", "c"})

        assert [f.id for f in dependents] == ["b", "c"]

    def test_inactive_dependents_stop_the_walk(self):
        graph = graph_of(
            feature("a", dependents=("b",)),
            feature("b", dependencies=("a",), dependents=("c",)),
            feature("c", dependencies=("b",)),
        )

        assert graph.active_dependents("a", {"a", "c"}) == []

    def test_dependency_order(self):
        graph = graph_of(
            feature("c", dependencies=("b",)),
            feature("b", dependencies=("a",), dependents=("c",)),
            feature("a", dependents=("b",)),
        )

        assert graph.dependency_order(["c", "b", "a"]) == ["a", "b", "c"]
        assert graph.dependents_first_order(["a", "b", "c"]) == ["c", "b", "a"]

    def test_duplicate_feature_ids_are_rejected(self):
        with pytest.raises(ValueError, match="Duplicate feature id"):
            graph_of(feature("a"), feature("a"))


class TestValidateFeatureDependencies:
    """Tests for the catalog integrity check."""

    def test_detects_cycle(self):
        graph = graph_of(
            feature("a", dependencies=("b",), dependents=("b",)),
            feature("b", dependencies=("a",), dependents=("a",)),
        )

        check = graph.validate_feature_dependencies()

        assert check.has_circular_dependencies is True
        assert check.is_consistent is False
        assert check.cycles == (("a", "b", "a"),)
        assert check.inconsistencies == ()

    def test_detects_longer_cycle(self):
        graph = graph_of(
            feature("a", dependencies=("c",), dependents=("b",)),
            feature("b", dependencies=("a",), dependents=("c",)),
            feature("c", dependencies=("b",), dependents=("a",)),
        )

        check = graph.validate_feature_dependencies()

        assert check.cycles == (("a", "c", "b", "a"),)

    def test_detects_missing_inverse(self):
        graph = graph_of(
            feature("a"),
            feature("b", dependencies=("a",)),
        )

        check = graph.validate_feature_dependencies()

        assert check.has_circular_dependencies is False
        assert check.inconsistencies == (
            "b depends on a but is not listed in its dependents",
        )

    def test_detects_core_feature_depending_on_optional_one(self):
        graph = graph_of(
            feature("reports", dependents=("ledger",)),
            feature("ledger", dependencies=("reports",), is_core=True),
        )

        check = graph.validate_feature_dependencies()

        assert check.is_consistent is False
        assert check.inconsistencies == (
            "core feature ledger depends on non-core feature reports",
        )

    def test_detects_unknown_references(self):
        graph = graph_of(feature("a", dependencies=("ghost",), dependents=("phantom",)))

        check = graph.validate_feature_dependencies()

        assert check.inconsistencies == (
            "a depends on unknown feature ghost",
            "a lists unknown dependent phantom",
        )
