"""Base validator classes and models for the srcguard validation framework.

Provides the shared value types (violations, results) and the error
hierarchy used by every stage of a validation run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, get_args

if TYPE_CHECKING:
    from srcguard.environment import Environment
    from srcguard.validators.license_resolver import LicenseSpec
    from srcguard.validators.path_filter import SourceFile

ViolationKind = Literal["LICENSE_MISMATCH", "STYLE_VIOLATION", "OTHER"]

VIOLATION_KINDS: tuple[str, ...] = get_args(ViolationKind)


# -----------------------------------------------------------------------------
# Errors
# -----------------------------------------------------------------------------


class SrcguardError(Exception):
    """Base class for all srcguard errors."""


class ResolutionError(SrcguardError):
    """Raised when a configured license reference cannot be turned into text.

    This is a configuration problem and aborts the whole run before any
    file is examined.
    """

    def __init__(self, reference: str, reason: str) -> None:
        self.reference = reference
        self.reason = reason
        super().__init__(f"Cannot resolve license '{reference}': {reason}")


class BaseDirectoryError(SrcguardError):
    """Raised when the project base directory cannot be scanned."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot scan base directory {path}: {reason}")


class StyleEngineError(SrcguardError):
    """Raised when the external style engine cannot be run or understood."""


class ValidationFailure(SrcguardError):
    """Raised by ``validate`` when a run produced at least one violation.

    Attributes:
        result: The complete, ordered outcome of the run.
    """

    def __init__(self, result: ValidationResult) -> None:
        self.result = result
        count = len(result.violations)
        super().__init__(f"Validation failed with {count} violation(s)")


# -----------------------------------------------------------------------------
# Value types
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Violation:
    """A single rule failure found during checking.

    Attributes:
        kind: Category of the failure ("LICENSE_MISMATCH", "STYLE_VIOLATION"
            or "OTHER").
        file: Path of the offending file, relative to the base directory.
        message: Human-readable description of the failure.
        line: Optional 1-based line number within the file.
        rule: Optional rule code reported by the style engine (e.g., "E501").
        fix_id: Identifier of an automated fix for this violation, if any.
    """

    kind: ViolationKind
    file: str
    message: str
    line: int | None = None
    rule: str | None = None
    fix_id: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in VIOLATION_KINDS:
            raise ValueError(f"Unknown violation kind: {self.kind!r}")

    @property
    def fixable(self) -> bool:
        """Whether a fixer can resolve this violation."""
        return bool(self.fix_id)

    def sort_key(self) -> tuple[str, int]:
        """Key used for deterministic reporting order."""
        return (self.file, self.line or 0)

    def to_dict(self) -> dict[str, str | int]:
        """Convert to a JSON-friendly dictionary, omitting empty fields."""
        data: dict[str, str | int] = {
            "kind": self.kind,
            "file": self.file,
            "message": self.message,
        }
        if self.line is not None:
            data["line"] = self.line
        if self.rule:
            data["rule"] = self.rule
        if self.fix_id:
            data["fix_id"] = self.fix_id
        return data


@dataclass
class ValidatorResult:
    """Result of a single validator run.

    Attributes:
        name: Name of the validator (e.g., "license-header").
        status: Overall status ("pass", "fail" or "skipped").
        violations: Violations found by this validator.
        files_checked: Number of files the validator looked at.
    """

    name: str
    status: Literal["pass", "fail", "skipped"]
    violations: list[Violation]
    files_checked: int


@dataclass
class ValidationResult:
    """Aggregated outcome of one validation run.

    Attributes:
        violations: All violations, license group first then style group,
            each sorted by path and line.
        results: Individual results from each validator.
        license: The license specification enforced during the run.
        files_scanned: Number of source files enumerated.
    """

    violations: list[Violation] = field(default_factory=list)
    results: list[ValidatorResult] = field(default_factory=list)
    license: LicenseSpec | None = None
    files_scanned: int = 0

    @property
    def passed(self) -> bool:
        """True when the run found nothing to report."""
        return not self.violations

    @property
    def status(self) -> Literal["pass", "fail"]:
        return "pass" if self.passed else "fail"

    def count(self, kind: ViolationKind) -> int:
        """Count violations of the given kind."""
        return sum(1 for v in self.violations if v.kind == kind)

    def fixable(self) -> list[Violation]:
        """Return the violations that carry a fix id."""
        return [v for v in self.violations if v.fixable]


# -----------------------------------------------------------------------------
# Validator base class
# -----------------------------------------------------------------------------


class BaseValidator(ABC):
    """Abstract base class for validators run by the ValidationRunner.

    Attributes:
        env: Environment of the run.
        files: Source files enumerated for the run, sorted by relative path.
        license: License specification resolved for the run.
    """

    name: str = ""

    def __init__(
        self,
        env: Environment,
        files: list[SourceFile],
        license: LicenseSpec,
    ) -> None:
        self.env = env
        self.files = files
        self.license = license

    @abstractmethod
    def validate(self) -> ValidatorResult:
        """Run validation checks.

        Returns:
            ValidatorResult containing the outcome and any violations found.
        """

    def _result(self, violations: list[Violation]) -> ValidatorResult:
        status: Literal["pass", "fail"] = "fail" if violations else "pass"
        return ValidatorResult(
            name=self.name,
            status=status,
            violations=violations,
            files_checked=len(self.files),
        )
