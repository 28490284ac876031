"""Base classes for srcguard fixers.

Provides core abstractions for implementing fixers that can automatically
resolve violations detected by validators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from srcguard.validators.base import Violation
from srcguard.validators.license_resolver import LicenseSpec


@dataclass
class FixResult:
    """Result of a fixer execution.

    Attributes:
        success: Whether the fix was applied successfully.
        message: Human-readable description of what happened.
        files_modified: List of file paths that were modified.
    """

    success: bool
    message: str
    files_modified: list[str] = field(default_factory=list)


class BaseFixer(ABC):
    """Abstract base class for all fixers.

    Attributes:
        project_root: Root directory of the project being fixed.
        license: License specification the fix should establish.
    """

    # The fix_id this fixer handles (must be set by subclasses)
    fix_id: str = ""

    def __init__(self, project_root: Path, license: LicenseSpec) -> None:
        """Initialize fixer.

        Args:
            project_root: Root directory of the project.
            license: License specification resolved for the run.
        """
        self.project_root = project_root
        self.license = license

    @abstractmethod
    def fix(self, violation: Violation) -> FixResult:
        """Apply a fix for the given violation.

        Fixers should be idempotent - safe to run multiple times.

        Args:
            violation: The fixable violation to resolve.

        Returns:
            FixResult containing the outcome and affected files.
        """

    def can_fix(self, violation: Violation) -> bool:
        """Check if this fixer can handle the given violation.

        Default implementation checks if violation.fix_id matches this fixer's fix_id.
        """
        return violation.fix_id == self.fix_id

    def _resolve_path(self, relative_path: str) -> Path:
        """Resolve a relative path to an absolute path."""
        return self.project_root / relative_path
