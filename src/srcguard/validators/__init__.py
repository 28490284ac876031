"""Validation framework for srcguard.

Provides the license resolver, source enumeration, header matching, the
style engine adapter and the runner that aggregates their results.
"""

from __future__ import annotations

from srcguard.validators.base import (
    BaseDirectoryError,
    BaseValidator,
    ResolutionError,
    SrcguardError,
    StyleEngineError,
    ValidationFailure,
    ValidationResult,
    ValidatorResult,
    Violation,
    ViolationKind,
)
from srcguard.validators.header_matcher import (
    LicenseHeaderValidator,
    extract_header,
    matches,
    normalize,
)
from srcguard.validators.license_resolver import LicenseSpec, resolve_license
from srcguard.validators.path_filter import SourceFile, SourceTree, iter_source_files
from srcguard.validators.runner import ValidationRunner, validate
from srcguard.validators.style_engine import (
    RuffEngine,
    StyleConfig,
    StyleEngine,
    StyleRecord,
    StyleValidator,
)

__all__ = [
    # Base types
    "BaseValidator",
    "ValidationResult",
    "ValidatorResult",
    "Violation",
    "ViolationKind",
    # Errors
    "BaseDirectoryError",
    "ResolutionError",
    "SrcguardError",
    "StyleEngineError",
    "ValidationFailure",
    # License resolution and matching
    "LicenseHeaderValidator",
    "LicenseSpec",
    "extract_header",
    "matches",
    "normalize",
    "resolve_license",
    # Enumeration
    "SourceFile",
    "SourceTree",
    "iter_source_files",
    # Style engine
    "RuffEngine",
    "StyleConfig",
    "StyleEngine",
    "StyleRecord",
    "StyleValidator",
    # Runner
    "ValidationRunner",
    "validate",
]
