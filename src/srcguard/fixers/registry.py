"""Fixer registry for mapping fix_ids to fixer classes.

The registry provides a central lookup mechanism for finding the appropriate
fixer for a given fix_id. Fixers register themselves by their fix_id.
"""

from __future__ import annotations

from pathlib import Path

from srcguard.fixers.base import BaseFixer, FixResult
from srcguard.validators.base import Violation
from srcguard.validators.license_resolver import LicenseSpec


class FixerRegistry:
    """Registry that maps fix_ids to fixer classes.

    Example:
        >>> registry = FixerRegistry()
        >>> registry.register(MissingHeaderFixer)
        >>> fixer = registry.get_fixer("missing_license_header", project_root, license)
        >>> if fixer:
        ...     result = fixer.fix(violation)
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._fixers: dict[str, type[BaseFixer]] = {}

    def register(self, fixer_class: type[BaseFixer]) -> None:
        """Register a fixer class by its fix_id.

        Raises:
            ValueError: If the fixer has no fix_id or if a fixer with
                the same fix_id is already registered.
        """
        fix_id = fixer_class.fix_id
        if not fix_id:
            raise ValueError(
                f"Fixer class {fixer_class.__name__} has no fix_id defined"
            )
        if fix_id in self._fixers:
            raise ValueError(
                f"Fixer for fix_id '{fix_id}' already registered: "
                f"{self._fixers[fix_id].__name__}"
            )
        self._fixers[fix_id] = fixer_class

    def get_fixer(
        self, fix_id: str, project_root: Path, license: LicenseSpec
    ) -> BaseFixer | None:
        """Get an instantiated fixer for the given fix_id, or None."""
        fixer_class = self._fixers.get(fix_id)
        if fixer_class is None:
            return None
        return fixer_class(project_root, license)

    def has_fixer(self, fix_id: str) -> bool:
        return fix_id in self._fixers

    def list_fix_ids(self) -> list[str]:
        """List all registered fix_ids, sorted."""
        return sorted(self._fixers.keys())

    def apply_fix(
        self, violation: Violation, project_root: Path, license: LicenseSpec
    ) -> FixResult:
        """Apply a fix for the given violation using the appropriate fixer.

        Returns:
            FixResult from the fixer, or a failure result if no fixer
            is registered for the violation's fix_id.
        """
        fixer = self.get_fixer(violation.fix_id or "", project_root, license)
        if fixer is None:
            return FixResult(
                success=False,
                message=f"No fixer registered for fix_id: {violation.fix_id}",
            )
        return fixer.fix(violation)


# Global registry instance, created on first use
_global_registry: FixerRegistry | None = None


def get_global_registry() -> FixerRegistry:
    """Get the global fixer registry populated with the built-in fixers."""
    global _global_registry
    if _global_registry is None:
        _global_registry = _create_default_registry()
    return _global_registry


def _create_default_registry() -> FixerRegistry:
    # Import here to avoid circular imports
    from srcguard.fixers.license_fixer import MismatchedHeaderFixer, MissingHeaderFixer

    registry = FixerRegistry()
    registry.register(MissingHeaderFixer)
    registry.register(MismatchedHeaderFixer)
    return registry
