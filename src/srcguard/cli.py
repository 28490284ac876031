"""srcguard CLI - Main entry point."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from srcguard import __version__
from srcguard.cli_utils import (
    EXIT_CONFIG_ERROR,
    EXIT_VIOLATIONS,
    json_option,
    license_option,
    quiet_option,
    resolve_target,
    setup_logging,
    verbose_option,
    wire_config,
)
from srcguard.fixers.base import FixResult
from srcguard.fixers.registry import get_global_registry
from srcguard.validators import (
    BaseDirectoryError,
    ResolutionError,
    ValidationResult,
    ValidationRunner,
)

app = typer.Typer(
    name="srcguard",
    help="srcguard - License header and style gate for source trees.",
    add_completion=False,
)

# Rich consoles for output
console = Console()
err_console = Console(stderr=True)

KIND_COLORS = {
    "LICENSE_MISMATCH": "magenta",
    "STYLE_VIOLATION": "yellow",
    "OTHER": "red",
}


# -----------------------------------------------------------------------------
# Output Helpers
# -----------------------------------------------------------------------------


def _output_success(message: str, quiet: bool = False) -> None:
    """Print a success message."""
    if not quiet:
        console.print(f"[green]Success:[/green] {message}")


def _output_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[red]Error:[/red] {message}")


def _output_warning(message: str, quiet: bool = False) -> None:
    """Print a warning message."""
    if not quiet:
        err_console.print(f"[yellow]Warning:[/yellow] {message}")


def _output_info(message: str, quiet: bool = False) -> None:
    """Print an info message."""
    if not quiet:
        console.print(message)


def _exit_error(message: str, exit_code: int = EXIT_CONFIG_ERROR) -> None:
    """Print error and exit."""
    _output_error(message)
    raise typer.Exit(code=exit_code)


def _fatal(message: str, json_output: bool, key: str) -> None:
    if json_output:
        console.print_json(json.dumps({key: False, "error": message}))
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
    _exit_error(message)


def _license_summary(result: ValidationResult) -> dict[str, Any]:
    spec = result.license
    if spec is None or not spec.required:
        return {"required": False, "origin": spec.origin if spec else "none"}
    return {"required": True, "origin": spec.origin, "location": spec.location}


def _print_violations(result: ValidationResult) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Kind")
    table.add_column("File")
    table.add_column("Line", justify="right")
    table.add_column("Rule")
    table.add_column("Message")

    for violation in result.violations:
        color = KIND_COLORS.get(violation.kind, "white")
        table.add_row(
            f"[{color}]{violation.kind}[/{color}]",
            violation.file,
            str(violation.line) if violation.line is not None else "",
            violation.rule or "",
            violation.message,
        )

    console.print(table)


# -----------------------------------------------------------------------------
# Version and Main Callbacks
# -----------------------------------------------------------------------------


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"srcguard version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """srcguard - License header and style gate for source trees."""
    pass


# -----------------------------------------------------------------------------
# Check Command
# -----------------------------------------------------------------------------


@app.command()
def check(
    path: str | None = typer.Argument(
        None,
        help="Project directory to validate. Defaults to the enclosing project root.",
    ),
    license: str | None = license_option(),
    no_style: bool = typer.Option(
        False,
        "--no-style",
        help="Skip the style engine and only check license headers.",
    ),
    parallel: bool = typer.Option(
        False,
        "--parallel",
        "-p",
        help="Run the license and style validators in parallel.",
    ),
    json_output: bool = json_option(),
    quiet: bool = quiet_option(),
    verbose: bool = verbose_option(),
) -> None:
    """Validate license headers and code style of a source tree.

    The license text is taken from --license, the `license` setting in
    .srcguardrc or [tool.srcguard], or a LICENSE.txt on the resource path.
    Without any of these, license headers are not checked.

    Exit codes:
      0 - No violations
      1 - Violations found
      2 - Misconfiguration (unresolvable license, bad configuration or path)
    """
    setup_logging(verbose)
    target = resolve_target(path)
    config = wire_config(
        license=license,
        style="off" if no_style else None,
        parallel=parallel,
        start_dir=target,
    )

    runner = ValidationRunner(parallel=config.parallel)
    with tempfile.TemporaryDirectory(prefix="srcguard-") as tmp:
        env = config.to_environment(target, Path(tmp))
        try:
            result = runner.run(env)
        except (ResolutionError, BaseDirectoryError) as e:
            _fatal(str(e), json_output, "valid")
            return  # unreachable, but helps mypy

    output: dict[str, Any] = {
        "valid": result.passed,
        "path": str(target),
        "files_scanned": result.files_scanned,
        "license": _license_summary(result),
        "validators": [
            {
                "name": vr.name,
                "status": vr.status,
                "files_checked": vr.files_checked,
                "violations": len(vr.violations),
            }
            for vr in result.results
        ],
        "summary": {
            "total": len(result.violations),
            "license_mismatch": result.count("LICENSE_MISMATCH"),
            "style_violation": result.count("STYLE_VIOLATION"),
            "other": result.count("OTHER"),
        },
        "violations": [v.to_dict() for v in result.violations],
    }

    if json_output:
        console.print_json(json.dumps(output))
    elif result.passed:
        _output_success(f"{result.files_scanned} file(s) passed validation", quiet)
        if not _license_summary(result)["required"]:
            _output_info("[dim]No license configured; headers were not checked[/dim]", quiet)
    else:
        _output_error(f"Validation failed with {len(result.violations)} violation(s)")
        if not quiet:
            _print_violations(result)
            summary = output["summary"]
            console.print(
                f"  License: {summary['license_mismatch']}  "
                f"Style: {summary['style_violation']}  Other: {summary['other']}"
            )
            fixable = len(result.fixable())
            if fixable:
                _output_info(
                    f"Run [bold]srcguard fix[/bold] to repair {fixable} license header(s)"
                )

    if not result.passed:
        raise typer.Exit(code=EXIT_VIOLATIONS)


# -----------------------------------------------------------------------------
# Fix Command
# -----------------------------------------------------------------------------


@app.command()
def fix(
    path: str | None = typer.Argument(
        None,
        help="Project directory to fix. Defaults to the enclosing project root.",
    ),
    license: str | None = license_option(),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Show what would be fixed (no changes).",
    ),
    json_output: bool = json_option(),
    verbose: bool = verbose_option(),
) -> None:
    """Add or replace license headers in files that fail the license check.

    Exit codes:
      0 - All fixable violations fixed, or nothing to fix
      1 - Some fixes failed
      2 - Misconfiguration
    """
    setup_logging(verbose)
    target = resolve_target(path)
    config = wire_config(license=license, start_dir=target)

    with tempfile.TemporaryDirectory(prefix="srcguard-") as tmp:
        env = config.to_environment(target, Path(tmp))
        try:
            result = ValidationRunner().run(env, validator_names=["license"])
        except (ResolutionError, BaseDirectoryError) as e:
            _fatal(str(e), json_output, "success")
            return  # unreachable, but helps mypy

    output: dict[str, Any] = {
        "success": True,
        "path": str(target),
        "mode": "dry_run" if dry_run else "fix",
        "fixable_issues": 0,
        "fixes_applied": 0,
        "fixes_failed": 0,
        "fixes": [],
    }

    license_spec = result.license
    if license_spec is None or not license_spec.required:
        if json_output:
            output["message"] = "No license configured"
            console.print_json(json.dumps(output))
        else:
            _output_warning("No license configured; nothing to fix")
        return

    registry = get_global_registry()
    fixable = [v for v in result.fixable() if registry.has_fixer(v.fix_id or "")]
    output["fixable_issues"] = len(fixable)

    for violation in fixable:
        fix_info: dict[str, Any] = {"fix_id": violation.fix_id, "file": violation.file}
        if dry_run:
            fix_info["status"] = "would_apply"
        else:
            fix_result: FixResult = registry.apply_fix(violation, target, license_spec)
            fix_info["status"] = "applied" if fix_result.success else "failed"
            fix_info["message"] = fix_result.message
            if fix_result.success:
                output["fixes_applied"] += 1
            else:
                output["fixes_failed"] += 1
        output["fixes"].append(fix_info)

    output["success"] = output["fixes_failed"] == 0

    if json_output:
        console.print_json(json.dumps(output))
    else:
        _fix_print_results(output, dry_run=dry_run)

    if not output["success"]:
        raise typer.Exit(code=EXIT_VIOLATIONS)


def _fix_print_results(output: dict[str, Any], *, dry_run: bool) -> None:
    """Print fix command results to console."""
    if output["fixable_issues"] == 0:
        _output_success("All license headers are in place")
        return

    for fix_info in output["fixes"]:
        status = fix_info["status"]
        if status == "would_apply":
            console.print(f"  [cyan]WOULD FIX[/cyan] {fix_info['file']} [dim]({fix_info['fix_id']})[/dim]")
        elif status == "applied":
            console.print(f"  [green]FIXED[/green] {fix_info['file']}")
        else:
            console.print(f"  [red]FAILED[/red] {fix_info['file']}")
            console.print(f"    [dim]{fix_info.get('message', '')}[/dim]")

    if dry_run:
        _output_info(f"Run [bold]srcguard fix[/bold] to apply {output['fixable_issues']} fix(es)")
    elif output["fixes_failed"]:
        _output_error(f"Applied {output['fixes_applied']} fix(es), {output['fixes_failed']} failed")
    else:
        _output_success(f"Applied {output['fixes_applied']} fix(es)")
