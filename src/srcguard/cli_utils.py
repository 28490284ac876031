"""CLI utility functions for srcguard.

Provides helper functions for:
- Config wiring: Extracting Typer CLI options and passing to load_config
- Path resolution: Finding the project root by looking for marker files
- Error formatting: Consistent user-friendly error messages with exit codes
- Logging setup for the command line
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, NoReturn

import typer

from srcguard.config import SrcguardConfig, load_config

# Files that mark the root of a project
PROJECT_MARKERS = (".srcguardrc", "pyproject.toml", ".git")

# Exit code conventions
EXIT_VIOLATIONS = 1  # Validation found violations
EXIT_CONFIG_ERROR = 2  # Misconfiguration (license unresolvable, bad config, bad path)


class ProjectRootNotFoundError(Exception):
    """Raised when project root cannot be found."""

    def __init__(self, start_dir: Path, markers: tuple[str, ...] = PROJECT_MARKERS) -> None:
        self.start_dir = start_dir
        self.markers = markers
        super().__init__(
            f"Could not find project root (none of {', '.join(markers)} found). "
            f"Searched from: {start_dir}"
        )


# -----------------------------------------------------------------------------
# Error Formatting Helpers
# -----------------------------------------------------------------------------


def error(msg: str, *, exit_code: int = EXIT_CONFIG_ERROR) -> NoReturn:
    """Print an error message and exit with the given exit code.

    Raises:
        typer.Exit: Always raises to exit the program.
    """
    styled_prefix = typer.style("Error:", fg=typer.colors.RED, bold=True)
    typer.echo(f"{styled_prefix} {msg}", err=True)
    raise typer.Exit(code=exit_code)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging to stderr.

    Library modules log through ``logging.getLogger(__name__)``; the CLI
    shows warnings by default and everything with ``--verbose``.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


# -----------------------------------------------------------------------------
# Path Resolution Helpers
# -----------------------------------------------------------------------------


def find_project_root(
    start_dir: Path | None = None,
    markers: tuple[str, ...] = PROJECT_MARKERS,
) -> Path:
    """Find the project root by looking for a marker file or directory.

    Args:
        start_dir: Directory to start searching from. Defaults to cwd.
        markers: Names whose presence marks a project root.

    Returns:
        Path to the project root.

    Raises:
        ProjectRootNotFoundError: If no project root is found.
        PermissionError: If a directory cannot be accessed.
    """
    current = (start_dir or Path.cwd()).resolve()
    original_start = current

    while True:
        try:
            if any((current / marker).exists() for marker in markers):
                return current
        except PermissionError as e:
            raise PermissionError(
                f"Permission denied when checking for project root at: {current}"
            ) from e

        parent = current.parent
        if parent == current:
            raise ProjectRootNotFoundError(original_start, markers)

        current = parent


def resolve_target(path: str | None) -> Path:
    """Resolve the directory a command should validate.

    An explicit path is used as-is. Without one, the enclosing project
    root is used, falling back to the current directory.

    Raises:
        typer.Exit: If an explicit path is not an existing directory.
    """
    if path:
        target = Path(path).resolve()
        if not target.exists():
            error(f"Path does not exist: {target}")
        if not target.is_dir():
            error(f"Path is not a directory: {target}")
        return target

    try:
        return find_project_root()
    except ProjectRootNotFoundError:
        return Path.cwd().resolve()


# -----------------------------------------------------------------------------
# Config Wiring Helper
# -----------------------------------------------------------------------------


def wire_config(
    license: str | None = None,
    style: str | None = None,
    parallel: bool | None = None,
    start_dir: Path | None = None,
) -> SrcguardConfig:
    """Wire CLI options to load_config with appropriate overrides.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    cli_overrides: dict[str, Any] = {}

    if license is not None:
        cli_overrides["license"] = license
    if style is not None:
        cli_overrides["style"] = style
    if parallel:
        cli_overrides["parallel"] = True

    try:
        return load_config(cli_overrides=cli_overrides, start_dir=start_dir)
    except ValueError as e:
        error(f"Invalid configuration: {e}", exit_code=EXIT_CONFIG_ERROR)


# -----------------------------------------------------------------------------
# Typer Option Factory Functions
# -----------------------------------------------------------------------------
# Typer consumes Option objects when decorating commands, so each command
# needs a fresh instance.


def license_option() -> Any:
    """Create a Typer Option for --license / -l."""
    return typer.Option(
        None,
        "--license",
        "-l",
        help="License reference: path, file:/http(s):// URL or classpath:NAME.",
    )


def json_option() -> Any:
    """Create a Typer Option for --json."""
    return typer.Option(
        False,
        "--json",
        help="Output as JSON.",
    )


def quiet_option() -> Any:
    """Create a Typer Option for --quiet / -q."""
    return typer.Option(
        False,
        "--quiet",
        "-q",
        help="Minimal output for CI.",
    )


def verbose_option() -> Any:
    """Create a Typer Option for --verbose."""
    return typer.Option(
        False,
        "--verbose",
        help="Show debug logging.",
    )
