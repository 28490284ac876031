"""Style engine adapter.

Runs an external style checker over the enumerated files and translates
its native records into srcguard violations. The engine is a black box:
rule codes and messages pass through untouched.
"""

from __future__ import annotations

import json
import logging
import subprocess
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, Protocol

from srcguard.environment import Environment, param_float, param_int, param_list
from srcguard.validators.base import (
    BaseValidator,
    StyleEngineError,
    ValidatorResult,
    Violation,
)
from srcguard.validators.path_filter import SourceFile

if TYPE_CHECKING:
    from srcguard.validators.license_resolver import LicenseSpec

logger = logging.getLogger(__name__)

# pycodestyle errors/warnings, pyflakes, mccabe complexity, pep8-naming
DEFAULT_SELECT = ("E", "W", "F", "C90", "N")
DEFAULT_LINE_LENGTH = 100
DEFAULT_MAX_COMPLEXITY = 10

STYLE_OFF = "off"

# Suffixes the engine can parse; other enumerated files are header-checked only
STYLE_SUFFIXES = (".py", ".pyi")


@dataclass(frozen=True)
class StyleRecord:
    """A violation as reported by the style engine."""

    path: str
    line: int | None
    column: int | None
    code: str | None
    message: str


@dataclass(frozen=True)
class StyleConfig:
    """Rule configuration handed to the style engine.

    Attributes:
        select: Rule codes or prefixes to enable.
        ignore: Rule codes or prefixes to disable.
        line_length: Maximum allowed line length.
        max_complexity: Maximum cyclomatic complexity per function.
        timeout: Seconds before the engine invocation is abandoned.
    """

    select: tuple[str, ...] = DEFAULT_SELECT
    ignore: tuple[str, ...] = ()
    line_length: int = DEFAULT_LINE_LENGTH
    max_complexity: int = DEFAULT_MAX_COMPLEXITY
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.line_length <= 0:
            raise ValueError("line_length must be positive")
        if self.max_complexity <= 0:
            raise ValueError("max_complexity must be positive")

    @classmethod
    def from_environment(cls, env: Environment) -> StyleConfig:
        """Merge the defaults with overrides supplied by the environment."""
        return cls(
            select=tuple(param_list(env, "style_select", list(DEFAULT_SELECT))),
            ignore=tuple(param_list(env, "style_ignore")),
            line_length=param_int(env, "line_length", DEFAULT_LINE_LENGTH),
            max_complexity=param_int(env, "max_complexity", DEFAULT_MAX_COMPLEXITY),
            timeout=param_float(env, "style_timeout", None),
        )


class StyleEngine(Protocol):
    """Narrow interface to an external style checker."""

    def run(
        self,
        files: Sequence[Path],
        config: StyleConfig,
        workdir: Path,
    ) -> list[StyleRecord]:
        """Check the given files and return the engine's records."""
        ...


def _toml_list(items: Sequence[str]) -> str:
    return "[" + ", ".join(json.dumps(item) for item in items) + "]"


class RuffEngine:
    """Style engine backed by the ``ruff`` linter, run as a subprocess."""

    CONFIG_NAME = "ruff.toml"

    def __init__(self, command: Sequence[str] | None = None) -> None:
        self.command = list(command) if command else [sys.executable, "-m", "ruff"]

    def write_config(self, config: StyleConfig, workdir: Path) -> Path:
        """Write the merged rule configuration where ruff can read it."""
        workdir.mkdir(parents=True, exist_ok=True)
        path = workdir / self.CONFIG_NAME
        lines = [
            f"line-length = {config.line_length}",
            "",
            "[lint]",
            f"select = {_toml_list(config.select)}",
            f"ignore = {_toml_list(config.ignore)}",
            "",
            "[lint.mccabe]",
            f"max-complexity = {config.max_complexity}",
            "",
        ]
        path.write_text("\n".join(lines), encoding="utf-8")
        return path

    def build_command(self, files: Sequence[Path], config_path: Path) -> list[str]:
        return [
            *self.command,
            "check",
            "--no-cache",
            "--no-fix",
            "--output-format",
            "json",
            "--config",
            str(config_path),
            *(str(f) for f in files),
        ]

    def run(
        self,
        files: Sequence[Path],
        config: StyleConfig,
        workdir: Path,
    ) -> list[StyleRecord]:
        if not files:
            return []
        config_path = self.write_config(config, workdir)
        cmd = self.build_command(files, config_path)
        logger.debug("Running style engine on %d file(s)", len(files))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=config.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise StyleEngineError(f"Cannot run ruff: {e}") from e

        # 0 = clean, 1 = violations found, anything else is an engine failure
        if result.returncode not in (0, 1):
            detail = result.stderr.strip() or f"exit code {result.returncode}"
            raise StyleEngineError(f"ruff failed: {detail}")

        return self.parse_output(result.stdout)

    @staticmethod
    def parse_output(output: str) -> list[StyleRecord]:
        """Parse ruff's JSON output into style records.

        Raises:
            StyleEngineError: If the output is not the expected JSON shape.
        """
        if not output.strip():
            return []
        try:
            data: Any = json.loads(output)
        except json.JSONDecodeError as e:
            raise StyleEngineError(f"Unexpected ruff output: {e}") from e
        if not isinstance(data, list):
            raise StyleEngineError("Unexpected ruff output: expected a list")

        records: list[StyleRecord] = []
        for item in data:
            if not isinstance(item, dict):
                raise StyleEngineError("Unexpected ruff output: expected objects")
            location = item.get("location") or {}
            records.append(
                StyleRecord(
                    path=str(item.get("filename", "")),
                    line=location.get("row"),
                    column=location.get("column"),
                    code=item.get("code"),
                    message=str(item.get("message", "")),
                )
            )
        return records


class StyleValidator(BaseValidator):
    """Runs the style engine across all files of a run."""

    name = "style"

    def __init__(
        self,
        env: Environment,
        files: list[SourceFile],
        license: LicenseSpec,
        engine: StyleEngine | None = None,
    ) -> None:
        super().__init__(env, files, license)
        self.engine = engine or RuffEngine()

    def validate(self) -> ValidatorResult:
        if (self.env.param("style") or "").strip().lower() == STYLE_OFF:
            return ValidatorResult(
                name=self.name,
                status="skipped",
                violations=[],
                files_checked=0,
            )
        config = StyleConfig.from_environment(self.env)
        files = [f for f in self.files if f.path.suffix.lower() in STYLE_SUFFIXES]
        if len(files) < len(self.files):
            logger.debug("Style check skips %d non-Python files", len(self.files) - len(files))
        violations = self.check(files, config)
        status: Literal["pass", "fail"] = "fail" if violations else "pass"
        return ValidatorResult(
            name=self.name,
            status=status,
            violations=violations,
            files_checked=len(files),
        )

    def check(self, files: Sequence[SourceFile], config: StyleConfig) -> list[Violation]:
        """Run the engine and translate its records.

        An engine failure is reported as a single OTHER violation against
        the base directory.
        """
        if not files:
            return []
        base = self.env.basedir().resolve()
        by_path = {str(f.path): f.relative_path for f in files}

        try:
            records = self.engine.run(
                [f.path for f in files],
                config,
                self.env.tempdir(),
            )
        except StyleEngineError as e:
            return [Violation(kind="OTHER", file=".", message=str(e))]

        return [
            Violation(
                kind="STYLE_VIOLATION",
                file=self._relative(record.path, base, by_path),
                line=record.line,
                rule=record.code,
                message=record.message,
            )
            for record in records
        ]

    @staticmethod
    def _relative(path: str, base: Path, by_path: dict[str, str]) -> str:
        if path in by_path:
            return by_path[path]
        try:
            return Path(path).resolve().relative_to(base).as_posix()
        except (ValueError, OSError):
            return path
