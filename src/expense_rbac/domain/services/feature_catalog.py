"""Feature dependency graph.

Static catalog of features grouped into categories, with the graph queries
the validator and visibility manager reason over: missing dependencies,
transitive active dependents, dependency-safe ordering, and the
catalog-level integrity check (cycle detection plus inverse consistency).
"""

from typing import Iterable, Optional

from expense_rbac.core.logging import get_logger
from expense_rbac.domain.entities.feature import Feature, FeatureCategory
from expense_rbac.domain.entities.validation import DependencyCheck

logger = get_logger(__name__)

DEFAULT_CATEGORIES: tuple[FeatureCategory, ...] = (
    FeatureCategory(
        id="core-apps",
        name="Core Applications",
        description="Main application modules",
        features=(
            Feature(
                id="expenses",
                name="Expense Manager",
                description="Expense tracking and management",
                app_id="expenses",
                dependents=("analytics", "charts"),
                is_core=True,
            ),
            Feature(
                id="settings",
                name="Settings",
                description="System configuration and user management",
                app_id="settings",
                dependents=("user_management", "system_config", "audit_logs"),
                is_core=True,
            ),
        ),
    ),
    FeatureCategory(
        id="dashboard-components",
        name="Dashboard Components",
        description="Analytics and reporting features",
        features=(
            Feature(
                id="analytics",
                name="Analytics Dashboard",
                description="Expense analytics and insights",
                app_id="expenses",
                dependencies=("expenses",),
            ),
            Feature(
                id="charts",
                name="Charts & Graphs",
                description="Visual data representation",
                app_id="expenses",
                dependencies=("expenses",),
            ),
        ),
    ),
    FeatureCategory(
        id="user-interface",
        name="User Interface",
        description="UI components and navigation features",
        features=(
            Feature(
                id="navigation",
                name="Navigation Menu",
                description="Main navigation and menu system",
                app_id="shell",
                is_core=True,
            ),
            Feature(
                id="themes",
                name="Theme System",
                description="Dark/light theme switching",
                app_id="shell",
            ),
            Feature(
                id="notifications",
                name="Notifications",
                description="Toast notifications and alerts",
                app_id="shell",
            ),
        ),
    ),
    FeatureCategory(
        id="administrative",
        name="Administrative",
        description="Admin-only features and system management",
        features=(
            Feature(
                id="user_management",
                name="User Management",
                description="Manage users and role assignments",
                app_id="settings",
                dependencies=("settings",),
                admin_only=True,
            ),
            Feature(
                id="system_config",
                name="System Configuration",
                description="Advanced system settings",
                app_id="settings",
                dependencies=("settings",),
                admin_only=True,
            ),
            Feature(
                id="audit_logs",
                name="Audit Logs",
                description="System activity and security logs",
                app_id="settings",
                dependencies=("settings",),
                admin_only=True,
            ),
        ),
    ),
)


class FeatureDependencyGraph:
    """Read-only view over the feature catalog.

    Features keep catalog order (category order, then feature order within
    the category) wherever a query returns more than one of them.
    """

    def __init__(self, categories: Iterable[FeatureCategory] = DEFAULT_CATEGORIES) -> None:
        """Index the catalog.

        Args:
            categories: Ordered feature categories.

        Raises:
            ValueError: If a feature or category id appears twice.
        """
        self._categories: dict[str, FeatureCategory] = {}
        self._features: dict[str, Feature] = {}
        self._category_of: dict[str, str] = {}

        for category in categories:
            if category.id in self._categories:
                raise ValueError(f"Duplicate feature category: {category.id}")
            self._categories[category.id] = category
            for feature in category.features:
                if feature.id in self._features:
                    raise ValueError(f"Duplicate feature id: {feature.id}")
                self._features[feature.id] = feature
                self._category_of[feature.id] = category.id

        self._position = {feature_id: i for i, feature_id in enumerate(self._features)}

    @property
    def categories(self) -> list[FeatureCategory]:
        return list(self._categories.values())

    @property
    def features(self) -> list[Feature]:
        return list(self._features.values())

    @property
    def core_features(self) -> list[Feature]:
        return [feature for feature in self._features.values() if feature.is_core]

    def get_feature(self, feature_id: str) -> Optional[Feature]:
        return self._features.get(feature_id)

    def get_category(self, category_id: str) -> Optional[FeatureCategory]:
        return self._categories.get(category_id)

    def category_of(self, feature_id: str) -> Optional[str]:
        return self._category_of.get(feature_id)

    def names(self, feature_ids: Iterable[str]) -> list[str]:
        """Display names for feature ids; unknown ids are shown as-is."""
        result = []
        for feature_id in feature_ids:
            feature = self._features.get(feature_id)
            result.append(feature.name if feature else feature_id)
        return result

    def in_catalog_order(self, feature_ids: Iterable[str]) -> list[str]:
        """Sort known feature ids by catalog position, dropping unknown ones."""
        known = {feature_id for feature_id in feature_ids if feature_id in self._features}
        return sorted(known, key=self._position.__getitem__)

    def missing_dependencies(self, feature_id: str, active: Iterable[str]) -> list[Feature]:
        """Dependencies of a feature that are not in the active set.

        Args:
            feature_id: Feature about to be enabled.
            active: Feature ids currently active for the role.

        Returns:
            The missing dependency features. Dependencies that are absent
            from the catalog are reported too, as placeholder features named
            by their id, so a broken catalog never lets an enable through.
        """
        feature = self._features.get(feature_id)
        if feature is None:
            return []
        active_set = set(active)
        missing = []
        for dependency_id in feature.dependencies:
            if dependency_id in active_set:
                continue
            dependency = self._features.get(dependency_id)
            if dependency is None:
                dependency = Feature(
                    id=dependency_id,
                    name=dependency_id,
                    description="",
                    app_id="",
                )
            missing.append(dependency)
        return missing

    def active_dependents(self, feature_id: str, active: Iterable[str]) -> list[Feature]:
        """Transitive closure of active dependents of a feature.

        Walks ``dependents`` edges breadth-first, following only features
        that are in the active set. The feature itself is never included.

        Args:
            feature_id: Feature about to be disabled.
            active: Feature ids currently active for the role.

        Returns:
            Dependents that would be deactivated by the cascade, in catalog order.
        """
        active_set = set(active)
        found: set[str] = set()
        queue = [feature_id]
        while queue:
            current = self._features.get(queue.pop(0))
            if current is None:
                continue
            for dependent_id in current.dependents:
                if dependent_id == feature_id or dependent_id in found:
                    continue
                if dependent_id in active_set:
                    found.add(dependent_id)
                    queue.append(dependent_id)
        return [self._features[i] for i in self.in_catalog_order(found)]

    def dependency_order(self, feature_ids: Iterable[str]) -> list[str]:
        """Order feature ids so every dependency precedes its dependents.

        Only edges between ids in the given set are considered. Ties keep
        catalog order. Unknown ids are dropped.
        """
        wanted = self.in_catalog_order(feature_ids)
        wanted_set = set(wanted)
        ordered: list[str] = []
        placed: set[str] = set()
        visiting: set[str] = set()

        def place(feature_id: str) -> None:
            if feature_id in placed or feature_id in visiting:
                return
            visiting.add(feature_id)
            for dependency_id in self._features[feature_id].dependencies:
                if dependency_id in wanted_set:
                    place(dependency_id)
            visiting.discard(feature_id)
            placed.add(feature_id)
            ordered.append(feature_id)

        for feature_id in wanted:
            place(feature_id)
        return ordered

    def dependents_first_order(self, feature_ids: Iterable[str]) -> list[str]:
        """Order feature ids so dependents precede what they depend on."""
        return list(reversed(self.dependency_order(feature_ids)))

    def validate_feature_dependencies(self) -> DependencyCheck:
        """Check the whole catalog for cycles and inverse mismatches.

        Cycle detection is a depth-first search over ``dependencies`` edges
        with a visited set and a recursion stack; a back edge into the stack
        closes a cycle, reported as the path from the repeated feature back
        to itself. Independently, every ``dependencies`` edge must have the
        matching ``dependents`` edge and vice versa, and both must point at
        catalog features. A core feature may only depend on core features.

        Returns:
            DependencyCheck describing every problem found.
        """
        visited: set[str] = set()
        stack: list[str] = []
        on_stack: set[str] = set()
        cycles: list[tuple[str, ...]] = []

        def visit(feature_id: str) -> None:
            visited.add(feature_id)
            stack.append(feature_id)
            on_stack.add(feature_id)
            for dependency_id in self._features[feature_id].dependencies:
                if dependency_id not in self._features:
                    continue
                if dependency_id in on_stack:
                    start = stack.index(dependency_id)
                    cycles.append(tuple(stack[start:]) + (dependency_id,))
                elif dependency_id not in visited:
                    visit(dependency_id)
            stack.pop()
            on_stack.discard(feature_id)

        for feature_id in self._features:
            if feature_id not in visited:
                visit(feature_id)

        inconsistencies: list[str] = []
        for feature in self._features.values():
            for dependency_id in feature.dependencies:
                dependency = self._features.get(dependency_id)
                if dependency is None:
                    inconsistencies.append(
                        f"{feature.id} depends on unknown feature {dependency_id}"
                    )
                else:
                    if feature.id not in dependency.dependents:
                        inconsistencies.append(
                            f"{feature.id} depends on {dependency_id} but is not listed "
                            f"in its dependents"
                        )
                    if feature.is_core and not dependency.is_core:
                        inconsistencies.append(
                            f"core feature {feature.id} depends on non-core feature "
                            f"{dependency_id}"
                        )
            for dependent_id in feature.dependents:
                dependent = self._features.get(dependent_id)
                if dependent is None:
                    inconsistencies.append(
                        f"{feature.id} lists unknown dependent {dependent_id}"
                    )
                elif feature.id not in dependent.dependencies:
                    inconsistencies.append(
                        f"{feature.id} lists {dependent_id} as a dependent but "
                        f"{dependent_id} does not depend on it"
                    )

        check = DependencyCheck(
            has_circular_dependencies=bool(cycles),
            cycles=tuple(cycles),
            inconsistencies=tuple(inconsistencies),
        )
        if not check.is_consistent:
            logger.warning(
                "Feature catalog integrity problems",
                cycles=[" -> ".join(cycle) for cycle in check.cycles],
                inconsistencies=list(check.inconsistencies),
            )
        return check


default_feature_graph = FeatureDependencyGraph()
