"""Feature catalog and visibility entities.

Features are static catalog entries grouped into categories. Whether a
feature is active for a role is held in FeatureVisibility entries keyed by
``(role_id, feature_id)``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Feature:
    """A toggleable capability of one application module.

    Attributes:
        id: Unique feature key.
        name: Display name used in validation messages.
        description: What the feature provides.
        app_id: Application module the feature belongs to.
        dependencies: Features that must be active before this one can be enabled.
        dependents: Features that require this one (inverse of ``dependencies``).
        is_core: Core features can never be deactivated.
        admin_only: Only the administrator role may have it active.
    """

    id: str
    name: str
    description: str
    app_id: str
    dependencies: tuple[str, ...] = ()
    dependents: tuple[str, ...] = ()
    is_core: bool = False
    admin_only: bool = False

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Feature id is required")
        if self.id in self.dependencies:
            raise ValueError(f"Feature '{self.id}' cannot depend on itself")


@dataclass(frozen=True)
class FeatureCategory:
    """An ordered group of features."""

    id: str
    name: str
    description: str
    features: tuple[Feature, ...] = ()

    @property
    def feature_ids(self) -> list[str]:
        return [feature.id for feature in self.features]

    @property
    def has_core_features(self) -> bool:
        return any(feature.is_core for feature in self.features)


@dataclass
class FeatureVisibility:
    """Persisted visibility of one feature for one role.

    A feature is *active* for the role only when it is both visible and
    enabled. ``configuration`` is passed through untouched.
    """

    role_id: str
    feature_id: str
    app_id: str
    is_visible: bool = True
    is_enabled: bool = True
    configuration: dict[str, Any] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.is_visible and self.is_enabled

    @classmethod
    def for_state(cls, role_id: str, feature: Feature, enabled: bool) -> "FeatureVisibility":
        """Entry that makes ``feature`` active or inactive for ``role_id``."""
        return cls(
            role_id=role_id,
            feature_id=feature.id,
            app_id=feature.app_id,
            is_visible=enabled,
            is_enabled=enabled,
        )


class BulkAction(str, Enum):
    """Bulk visibility actions."""

    ENABLE = "enable"
    DISABLE = "disable"


@dataclass
class BulkOperation:
    """Enable or disable every feature of a category for a set of roles."""

    role_ids: list[str]
    category_id: str
    action: BulkAction = BulkAction.ENABLE

    def __post_init__(self) -> None:
        self.action = BulkAction(self.action)

    @property
    def enabled(self) -> bool:
        return self.action is BulkAction.ENABLE
