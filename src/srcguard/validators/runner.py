"""Validation runner for orchestrating a full srcguard run.

Resolves the license once, enumerates the source tree once, runs the
license-header and style validators and merges their violations into a
single deterministic result. Supports parallel validator execution.
"""

from __future__ import annotations

import concurrent.futures
import logging
from pathlib import Path
from typing import Literal

from srcguard.environment import Environment, param_list
from srcguard.validators.base import (
    BaseValidator,
    ValidationFailure,
    ValidationResult,
    ValidatorResult,
    Violation,
)
from srcguard.validators.header_matcher import LicenseHeaderValidator
from srcguard.validators.license_resolver import LicenseSpec, resolve_license
from srcguard.validators.path_filter import (
    DEFAULT_EXTENSIONS,
    IGNORED_DIRS,
    SourceFile,
    SourceTree,
)
from srcguard.validators.style_engine import StyleEngine, StyleValidator

logger = logging.getLogger(__name__)

Group = Literal["license", "style"]


class ValidationRunner:
    """Orchestrates a validation run.

    Supports:
    - Running all validators or a named subset
    - Parallel execution of validators
    - A pluggable style engine (ruff by default)
    """

    # Validator names in reporting order
    DEFAULT_VALIDATORS = ["license", "style"]

    def __init__(
        self,
        engine: StyleEngine | None = None,
        parallel: bool = False,
    ) -> None:
        """Initialize validation runner.

        Args:
            engine: Style engine handed to the style validator.
            parallel: Whether to run validators in parallel.
        """
        self.engine = engine
        self.parallel = parallel

    def validate(self, env: Environment) -> ValidationResult:
        """Run all validators and fail if anything was found.

        Args:
            env: Environment of the run.

        Returns:
            The (empty) ValidationResult of a clean run.

        Raises:
            ResolutionError: If the configured license cannot be resolved.
            BaseDirectoryError: If the base directory cannot be scanned.
            ValidationFailure: If at least one violation was found.
        """
        result = self.run(env)
        if not result.passed:
            raise ValidationFailure(result)
        return result

    def run(
        self,
        env: Environment,
        validator_names: list[str] | None = None,
    ) -> ValidationResult:
        """Run validators and collect every violation without raising for them.

        Args:
            env: Environment of the run.
            validator_names: Subset of validators to run. Defaults to all.

        Returns:
            ValidationResult with license violations first, then style
            violations, each group sorted by path and line.

        Raises:
            ResolutionError: If the configured license cannot be resolved.
            BaseDirectoryError: If the base directory cannot be scanned.
        """
        # Misconfiguration aborts before any file is looked at
        license = resolve_license(env)

        walk_errors: list[Violation] = []
        files = self._enumerate(env, walk_errors)

        names = [n for n in (validator_names or self.DEFAULT_VALIDATORS) if n in self.DEFAULT_VALIDATORS]
        if self.parallel and len(names) > 1:
            results = self._run_parallel(names, env, files, license)
        else:
            results = self._run_sequential(names, env, files, license)

        return self._aggregate_results(results, walk_errors, license, len(files))

    def _enumerate(self, env: Environment, errors: list[Violation]) -> list[SourceFile]:
        base = env.basedir()

        def on_error(err: OSError) -> None:
            errors.append(
                Violation(
                    kind="OTHER",
                    file=_relative_to(err.filename, base),
                    message=f"Cannot read directory: {err.strerror or err}",
                )
            )

        tree = SourceTree(
            base,
            extensions=param_list(env, "extensions", list(DEFAULT_EXTENSIONS)),
            exclude_dirs=IGNORED_DIRS.union(param_list(env, "exclude")),
            on_error=on_error,
        )
        return tree.collect()

    def _create_validator(
        self,
        name: str,
        env: Environment,
        files: list[SourceFile],
        license: LicenseSpec,
    ) -> BaseValidator:
        """Create a validator instance by name.

        Raises:
            KeyError: If validator name is not found.
        """
        if name == "license":
            return LicenseHeaderValidator(env, files, license)
        if name == "style":
            return StyleValidator(env, files, license, engine=self.engine)
        raise KeyError(name)

    @staticmethod
    def _error_result(name: str, exc: Exception) -> ValidatorResult:
        logger.debug("Validator %s raised", name, exc_info=exc)
        return ValidatorResult(
            name=name,
            status="fail",
            violations=[
                Violation(
                    kind="OTHER",
                    file=".",
                    message=f"Validator {name} failed: {exc!s}",
                )
            ],
            files_checked=0,
        )

    def _run_sequential(
        self,
        names: list[str],
        env: Environment,
        files: list[SourceFile],
        license: LicenseSpec,
    ) -> list[tuple[str, ValidatorResult]]:
        results: list[tuple[str, ValidatorResult]] = []

        for name in names:
            try:
                validator = self._create_validator(name, env, files, license)
                results.append((name, validator.validate()))
            except Exception as e:
                results.append((name, self._error_result(name, e)))

        return results

    def _run_parallel(
        self,
        names: list[str],
        env: Environment,
        files: list[SourceFile],
        license: LicenseSpec,
    ) -> list[tuple[str, ValidatorResult]]:
        results: list[tuple[str, ValidatorResult]] = []

        with concurrent.futures.ThreadPoolExecutor(max_workers=len(names)) as executor:
            future_to_name: dict[concurrent.futures.Future[ValidatorResult], str] = {}
            for name in names:
                try:
                    validator = self._create_validator(name, env, files, license)
                    future_to_name[executor.submit(validator.validate)] = name
                except Exception as e:
                    results.append((name, self._error_result(name, e)))

            for future in concurrent.futures.as_completed(future_to_name):
                name = future_to_name[future]
                try:
                    results.append((name, future.result()))
                except Exception as e:
                    results.append((name, self._error_result(name, e)))

        # Completion order must not leak into the report
        order = {name: i for i, name in enumerate(self.DEFAULT_VALIDATORS)}
        results.sort(key=lambda item: order[item[0]])
        return results

    def _aggregate_results(
        self,
        results: list[tuple[str, ValidatorResult]],
        walk_errors: list[Violation],
        license: LicenseSpec,
        files_scanned: int,
    ) -> ValidationResult:
        """Merge validator results into the fixed reporting order."""
        groups: dict[Group, list[Violation]] = {"license": list(walk_errors), "style": []}

        for name, result in results:
            group: Group = "style" if name == "style" else "license"
            groups[group].extend(result.violations)

        violations: list[Violation] = []
        for group_name in ("license", "style"):
            violations.extend(sorted(groups[group_name], key=Violation.sort_key))

        return ValidationResult(
            violations=violations,
            results=[result for _, result in results],
            license=license,
            files_scanned=files_scanned,
        )


def _relative_to(filename: object, base: Path) -> str:
    if not filename:
        return "."
    path = Path(str(filename))
    for root in (base, base.resolve()):
        try:
            return path.relative_to(root).as_posix()
        except ValueError:
            continue
    return path.as_posix()


def validate(env: Environment, engine: StyleEngine | None = None) -> ValidationResult:
    """Validate a project in one call.

    Raises:
        ResolutionError: If the configured license cannot be resolved.
        BaseDirectoryError: If the base directory cannot be scanned.
        ValidationFailure: If at least one violation was found.
    """
    return ValidationRunner(engine=engine).validate(env)
