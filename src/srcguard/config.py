"""Configuration management for the srcguard CLI tool.

Handles configuration loading from multiple sources with precedence:
CLI args > environment variables > .srcguardrc > pyproject.toml > defaults
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from srcguard.environment import ProjectEnvironment
from srcguard.validators.path_filter import DEFAULT_EXTENSIONS
from srcguard.validators.style_engine import (
    DEFAULT_LINE_LENGTH,
    DEFAULT_MAX_COMPLEXITY,
    DEFAULT_SELECT,
    STYLE_OFF,
)

# tomllib is only available in Python 3.11+
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found]

STYLE_ENGINES = ("ruff", STYLE_OFF)

# Fields holding lists; accepted as TOML arrays or comma-separated strings
_LIST_FIELDS = ("resources", "extensions", "exclude", "style_select", "style_ignore")


@dataclass
class SrcguardConfig:
    """Configuration for a srcguard run.

    Attributes:
        license: License reference (path, file:/http(s):/classpath: URL).
        resources: Directories searched for bundled license resources.
        extensions: Source file extensions to check.
        exclude: Directory names never scanned, on top of the built-in ignores.
        style: Style engine to use ("ruff" or "off").
        style_select: Rule codes enabled in the style engine.
        style_ignore: Rule codes disabled in the style engine.
        line_length: Maximum line length for the style engine.
        max_complexity: Maximum cyclomatic complexity for the style engine.
        parallel: Run the license and style validators in parallel.
    """

    license: str | None = None
    resources: list[str] = field(default_factory=list)
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude: list[str] = field(default_factory=list)
    style: str = "ruff"
    style_select: list[str] = field(default_factory=lambda: list(DEFAULT_SELECT))
    style_ignore: list[str] = field(default_factory=list)
    line_length: int = DEFAULT_LINE_LENGTH
    max_complexity: int = DEFAULT_MAX_COMPLEXITY
    parallel: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any configuration value is invalid.
        """
        if self.license is not None and not isinstance(self.license, str):
            raise ValueError("license must be a string")

        for name in _LIST_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ValueError(f"{name} must be a list of strings")

        if not self.extensions:
            raise ValueError("extensions must not be empty")

        if self.style not in STYLE_ENGINES:
            raise ValueError(f"style must be one of: {', '.join(STYLE_ENGINES)}")

        if not isinstance(self.line_length, int) or self.line_length <= 0:
            raise ValueError("line_length must be a positive integer")

        if not isinstance(self.max_complexity, int) or self.max_complexity <= 0:
            raise ValueError("max_complexity must be a positive integer")

    def to_params(self) -> dict[str, str]:
        """Render the configuration as environment parameters."""
        params: dict[str, str] = {
            "extensions": ",".join(self.extensions),
            "exclude": ",".join(self.exclude),
            "style": self.style,
            "style_select": ",".join(self.style_select),
            "style_ignore": ",".join(self.style_ignore),
            "line_length": str(self.line_length),
            "max_complexity": str(self.max_complexity),
        }
        if self.license:
            params["license"] = self.license
        if self.resources:
            params["resources"] = os.pathsep.join(self.resources)
        return params

    def to_environment(self, basedir: Path, tempdir: Path | None = None) -> ProjectEnvironment:
        """Build the environment for a run over ``basedir``.

        Args:
            basedir: Project root directory.
            tempdir: Scratch directory. Defaults to ``.srcguard`` under the
                project's build directory.
        """
        temp = tempdir or basedir / "build" / ".srcguard"
        return ProjectEnvironment(base=basedir, temp=temp, params=self.to_params())


def _get_config_field_names() -> set[str]:
    """Get the set of valid configuration field names.

    Returns:
        Set of field names from SrcguardConfig.
    """
    return {f.name for f in fields(SrcguardConfig)}


def find_config_file(filename: str = ".srcguardrc", start_dir: Path | None = None) -> Path | None:
    """Find a configuration file by traversing up the directory tree.

    Searches for the specified file starting from start_dir (or current directory)
    and traversing up to the filesystem root.

    Args:
        filename: Name of the config file to find.
        start_dir: Directory to start searching from. Defaults to current directory.

    Returns:
        Path to the config file if found, None otherwise.
    """
    current = start_dir or Path.cwd()
    current = current.resolve()

    while True:
        config_path = current / filename
        if config_path.is_file():
            return config_path

        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    with open(path, "rb") as f:
        result: dict[str, Any] = tomllib.load(f)
        return result


def _coerce(key: str, value: Any) -> Any:
    """Convert string values from flat sources to the field's type."""
    if not isinstance(value, str):
        return value
    if key in _LIST_FIELDS:
        return [item.strip() for item in value.split(",") if item.strip()]
    if key in ("line_length", "max_complexity"):
        try:
            return int(value)
        except ValueError as e:
            raise ValueError(f"{key} must be an integer, got {value!r}") from e
    if key == "parallel":
        return value.strip().lower() in ("1", "true", "yes", "on")
    return value


def _filter_fields(data: dict[str, Any]) -> dict[str, Any]:
    valid_fields = _get_config_field_names()
    return {k.replace("-", "_"): v for k, v in data.items() if k.replace("-", "_") in valid_fields}


def _load_from_srcguardrc(start_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration from a .srcguardrc file.

    Returns:
        Dictionary containing configuration from .srcguardrc, or empty dict if not found.
    """
    config_path = find_config_file(".srcguardrc", start_dir)
    if config_path is None:
        return {}

    try:
        return _filter_fields(_load_toml_file(config_path))
    except (tomllib.TOMLDecodeError, OSError):
        return {}


def _load_from_pyproject(start_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration from pyproject.toml [tool.srcguard] section.

    Returns:
        Dictionary containing configuration from pyproject.toml, or empty dict if not found.
    """
    config_path = find_config_file("pyproject.toml", start_dir)
    if config_path is None:
        return {}

    try:
        data = _load_toml_file(config_path)
        tool_section = data.get("tool", {})
        return _filter_fields(tool_section.get("srcguard", {}))
    except (tomllib.TOMLDecodeError, OSError):
        return {}


def _load_from_env() -> dict[str, Any]:
    """Load configuration from environment variables.

    Environment variables are prefixed with SRCGUARD_ and use uppercase names.
    For example: SRCGUARD_LICENSE, SRCGUARD_STYLE, SRCGUARD_LINE_LENGTH

    Returns:
        Dictionary containing configuration from environment variables.
    """
    result: dict[str, Any] = {}
    for config_key in _get_config_field_names():
        value = os.environ.get(f"SRCGUARD_{config_key.upper()}")
        if value is not None:
            result[config_key] = value

    return result


def _merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge multiple configuration dictionaries.

    Later dictionaries take precedence over earlier ones.
    """
    result: dict[str, Any] = {}
    for config in configs:
        for key, value in config.items():
            if value is not None:
                result[key] = value
    return result


def load_config(
    cli_overrides: dict[str, Any] | None = None,
    start_dir: Path | None = None,
) -> SrcguardConfig:
    """Load configuration with full precedence chain.

    Loads configuration from multiple sources and merges them with the following
    precedence (highest to lowest):
    1. CLI arguments (cli_overrides)
    2. Environment variables (SRCGUARD_*)
    3. .srcguardrc file
    4. pyproject.toml [tool.srcguard] section
    5. Default values

    Args:
        cli_overrides: Configuration overrides from CLI arguments.
        start_dir: Directory to start searching for config files.

    Returns:
        Fully resolved SrcguardConfig instance.

    Raises:
        ValueError: If the resulting configuration is invalid.
    """
    pyproject_config = _load_from_pyproject(start_dir)
    srcguardrc_config = _load_from_srcguardrc(start_dir)
    env_config = _load_from_env()
    cli_config = cli_overrides or {}

    valid_fields = _get_config_field_names()
    cli_config = {k: v for k, v in cli_config.items() if k in valid_fields and v is not None}

    merged = _merge_configs(
        pyproject_config,
        srcguardrc_config,
        env_config,
        cli_config,
    )

    # Create config instance (defaults are applied by the dataclass)
    return SrcguardConfig(**{k: _coerce(k, v) for k, v in merged.items()})
