"""Environment capability passed into every validation run.

The environment is supplied by the caller (a build integration, the CLI,
a test) and only ever read by the validation core.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class Environment(Protocol):
    """Read-only view of the project under validation."""

    def basedir(self) -> Path:
        """Root directory of the project."""
        ...

    def tempdir(self) -> Path:
        """Scratch directory for intermediate artifacts."""
        ...

    def param(self, name: str, default: str | None = None) -> str | None:
        """Look up a named configuration parameter."""
        ...


@dataclass(frozen=True)
class ProjectEnvironment:
    """Default Environment backed by plain values.

    Attributes:
        base: Project root directory.
        temp: Scratch directory. Created lazily on first ``tempdir()`` call.
        params: Named string parameters (e.g., {"license": "file:LICENSE.txt"}).
    """

    base: Path
    temp: Path
    params: Mapping[str, str] = field(default_factory=dict)

    def basedir(self) -> Path:
        return self.base

    def tempdir(self) -> Path:
        self.temp.mkdir(parents=True, exist_ok=True)
        return self.temp

    def param(self, name: str, default: str | None = None) -> str | None:
        return self.params.get(name, default)


def param_list(env: Environment, name: str, default: list[str] | None = None) -> list[str]:
    """Read a comma-separated parameter as a list of stripped, non-empty items.

    Args:
        env: Environment to read from.
        name: Parameter name.
        default: Value returned when the parameter is absent.

    Returns:
        List of items, or a copy of ``default`` (empty list if None).
    """
    raw = env.param(name)
    if raw is None:
        return list(default or [])
    return [item.strip() for item in raw.split(",") if item.strip()]


def param_int(env: Environment, name: str, default: int) -> int:
    """Read an integer parameter.

    Raises:
        ValueError: If the parameter is present but not an integer.
    """
    raw = env.param(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"Parameter '{name}' must be an integer, got {raw!r}") from e


def param_float(env: Environment, name: str, default: float | None) -> float | None:
    """Read a float parameter, returning ``default`` when absent."""
    raw = env.param(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"Parameter '{name}' must be a number, got {raw!r}") from e


def param_paths(env: Environment, name: str) -> list[Path]:
    """Read an ``os.pathsep``-separated list of directories.

    Relative entries are resolved against the environment's base directory.
    """
    raw = env.param(name)
    if raw is None:
        return []
    base = env.basedir()
    paths: list[Path] = []
    for entry in raw.split(os.pathsep):
        entry = entry.strip()
        if not entry:
            continue
        p = Path(entry)
        paths.append(p if p.is_absolute() else base / p)
    return paths
