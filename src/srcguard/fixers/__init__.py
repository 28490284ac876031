"""Fixer framework for automatically resolving srcguard violations.

Provides fixers that can automatically fix license header violations
detected by the validation framework.
"""

from __future__ import annotations

from srcguard.fixers.base import BaseFixer, FixResult
from srcguard.fixers.license_fixer import (
    MismatchedHeaderFixer,
    MissingHeaderFixer,
    render_header,
)
from srcguard.fixers.registry import (
    FixerRegistry,
    get_global_registry,
)

__all__ = [
    # Base types
    "BaseFixer",
    "FixResult",
    # Registry
    "FixerRegistry",
    "get_global_registry",
    # Fixers
    "MismatchedHeaderFixer",
    "MissingHeaderFixer",
    "render_header",
]
