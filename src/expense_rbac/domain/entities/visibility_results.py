"""Results returned by feature visibility operations."""

from dataclasses import dataclass, field
from typing import Literal

AccessibilityLevel = Literal["full", "standard", "limited"]


@dataclass(frozen=True)
class FeatureUpdateResult:
    """Outcome of a single committed feature change.

    Attributes:
        success: Always True; failures raise instead.
        affected_users: Users holding the role (best-effort count).
        warnings: Advisory messages produced by validation.
        cascaded: Dependents deactivated together with the feature.
    """

    success: bool
    affected_users: int
    warnings: tuple[str, ...] = ()
    cascaded: tuple[str, ...] = ()


@dataclass(frozen=True)
class BulkItemFailure:
    """A ``(role, feature)`` pair a bulk operation could not apply."""

    role_id: str
    feature_id: str
    error: str


@dataclass
class BulkOperationResult:
    """Per-item status of a best-effort bulk operation."""

    succeeded: list[tuple[str, str]] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)
    failed: list[BulkItemFailure] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)


@dataclass(frozen=True)
class BulkOperationImpact:
    """Read-only projection of what a bulk operation would touch."""

    affected_users: int
    features_changed: int
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class NavigationItem:
    id: str
    name: str


@dataclass(frozen=True)
class InterfacePreview:
    """What a role's interface would look like with pending changes applied.

    Attributes:
        role_id: Role being previewed.
        available_features: Active feature ids in catalog order.
        navigation_structure: Category id to the active features it would show.
        accessible_apps: Application modules with at least one active feature.
        feature_count: Number of active features.
        accessibility_level: 'full', 'standard' or 'limited'.
        warnings: Usability warnings for the previewed set.
    """

    role_id: str
    available_features: tuple[str, ...]
    navigation_structure: dict[str, tuple[NavigationItem, ...]]
    accessible_apps: tuple[str, ...]
    feature_count: int
    accessibility_level: AccessibilityLevel
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class QueuedToggle:
    """A debounced toggle waiting to be written."""

    role_id: str
    feature_id: str
    enabled: bool
    timestamp: float


@dataclass(frozen=True)
class ToggleOutcome:
    """Result of applying one coalesced toggle during a queue drain."""

    role_id: str
    feature_id: str
    enabled: bool
    error: str | None = None

    @property
    def applied(self) -> bool:
        return self.error is None
