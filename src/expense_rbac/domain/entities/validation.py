"""Tagged validation results.

Validators never raise for bad input; they return one of these variants so
callers can render every message inline. ``is_valid`` is fixed per variant,
so a result can be dispatched on with ``isinstance`` or the flag alike.
"""

from dataclasses import dataclass, field
from typing import ClassVar


class ValidationResult:
    """Outcome of validating role input: either ``Valid`` or ``Invalid``."""

    is_valid: ClassVar[bool]


@dataclass(frozen=True)
class Valid(ValidationResult):
    """Input passed every rule."""

    is_valid: ClassVar[bool] = True

    @property
    def errors(self) -> dict[str, str]:
        return {}


@dataclass(frozen=True)
class Invalid(ValidationResult):
    """Input failed; ``errors`` maps field name to message."""

    errors: dict[str, str]
    is_valid: ClassVar[bool] = False

    @property
    def first_error(self) -> str:
        return next(iter(self.errors.values()))


class FeatureChangeResult:
    """Outcome of validating a feature change or bulk operation."""

    is_valid: ClassVar[bool]
    warnings: tuple[str, ...]
    requires_confirmation: bool

    @staticmethod
    def from_findings(
        errors: list[str],
        warnings: list[str],
        requires_confirmation: bool = False,
    ) -> "FeatureChangeResult":
        """Build the matching variant from collected messages."""
        if errors:
            return FeatureChangeRejected(
                errors=tuple(errors),
                warnings=tuple(warnings),
                requires_confirmation=requires_confirmation,
            )
        return FeatureChangeAccepted(
            warnings=tuple(warnings),
            requires_confirmation=requires_confirmation,
        )


@dataclass(frozen=True)
class FeatureChangeAccepted(FeatureChangeResult):
    """The change may proceed; warnings are advisory."""

    warnings: tuple[str, ...] = ()
    requires_confirmation: bool = False
    is_valid: ClassVar[bool] = True

    @property
    def errors(self) -> tuple[str, ...]:
        return ()


@dataclass(frozen=True)
class FeatureChangeRejected(FeatureChangeResult):
    """The change must not be applied."""

    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    requires_confirmation: bool = False
    is_valid: ClassVar[bool] = False


@dataclass(frozen=True)
class DependencyCheck:
    """Catalog integrity report.

    Attributes:
        has_circular_dependencies: True when any dependency cycle exists.
        cycles: Each detected cycle as a feature-id path ending where it started.
        inconsistencies: Dependency/dependent pairs that are not mutual inverses,
            or that reference unknown features.
    """

    has_circular_dependencies: bool
    cycles: tuple[tuple[str, ...], ...] = ()
    inconsistencies: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_consistent(self) -> bool:
        return not self.has_circular_dependencies and not self.inconsistencies
