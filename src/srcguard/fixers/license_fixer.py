"""Fixers for missing or outdated license headers.

Writes the configured license text at the top of a source file, using the
file's own comment syntax and keeping any shebang or encoding line first.
"""

from __future__ import annotations

from pathlib import Path

from srcguard.fixers.base import BaseFixer, FixResult
from srcguard.validators.base import Violation
from srcguard.validators.header_matcher import (
    FIX_LICENSE_MISMATCH,
    FIX_MISSING_HEADER,
    CommentStyle,
    HeaderScan,
    comment_style_for,
    normalize,
    scan_header,
    strip_comment_lines,
)
from srcguard.validators.license_resolver import LicenseSpec


def render_header(license: LicenseSpec, style: CommentStyle) -> list[str]:
    """Render the license as a comment block in the given style.

    Returns:
        Header lines, each terminated with a newline.
    """
    body = strip_comment_lines(license.raw)
    while body and not body[0]:
        body.pop(0)
    while body and not body[-1]:
        body.pop()

    if style.block:
        opener, closer = style.block
        lines = [opener, *(f" * {line}".rstrip() for line in body), f" {closer}"]
    else:
        prefix = style.line_prefixes[0]
        lines = [f"{prefix} {line}".rstrip() for line in body]
    return [f"{line}\n" for line in lines]


class _HeaderFixer(BaseFixer):
    """Shared logic for rewriting the top of a source file."""

    # Whether an existing, different header may be replaced
    replaces_existing = False

    def fix(self, violation: Violation) -> FixResult:
        if not self.license.required:
            return FixResult(success=False, message="No license configured; nothing to write")

        path = self._resolve_path(violation.file)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return FixResult(success=False, message=f"Failed to read {violation.file}: {e}")

        lines = text.splitlines(keepends=True)
        if lines and not lines[-1].endswith(("\n", "\r")):
            lines[-1] += "\n"
        style = comment_style_for(path)
        scan = scan_header(lines, style)

        # Idempotency: nothing to do if the header is already correct
        if scan.lines and normalize("\n".join(scan.lines)) == self.license.text:
            return FixResult(
                success=True,
                message=f"License header already present in {violation.file}",
            )

        if scan.shares_code_line:
            return FixResult(
                success=False,
                message=(
                    f"{violation.file}: leading comment ends on a line with code "
                    f"(line {scan.header_end}); fix the header by hand"
                ),
            )

        if scan.lines and not self.replaces_existing:
            return FixResult(
                success=False,
                message=(
                    f"{violation.file} starts with a different comment; "
                    f"use the {FIX_LICENSE_MISMATCH} fix to replace it"
                ),
            )

        new_lines = self._rewrite(lines, scan, style)
        try:
            self._write(path, "".join(new_lines))
        except OSError as e:
            return FixResult(success=False, message=f"Failed to write {violation.file}: {e}")

        return FixResult(
            success=True,
            message=self._success_message(violation.file),
            files_modified=[violation.file],
        )

    def _rewrite(self, lines: list[str], scan: HeaderScan, style: CommentStyle) -> list[str]:
        rest = lines[scan.header_end:]
        while rest and not rest[0].strip():
            rest.pop(0)
        header = render_header(self.license, style)
        separator = ["\n"] if rest else []
        return [*lines[: scan.preamble_end], *header, *separator, *rest]

    @staticmethod
    def _write(path: Path, content: str) -> None:
        path.write_text(content, encoding="utf-8")

    def _success_message(self, file: str) -> str:
        return f"Updated license header in {file}"


class MissingHeaderFixer(_HeaderFixer):
    """Inserts the license header into files that have none."""

    fix_id = FIX_MISSING_HEADER

    def _success_message(self, file: str) -> str:
        return f"Added license header to {file}"


class MismatchedHeaderFixer(_HeaderFixer):
    """Replaces an outdated leading comment with the license header."""

    fix_id = FIX_LICENSE_MISMATCH
    replaces_existing = True

    def _success_message(self, file: str) -> str:
        return f"Replaced license header in {file}"
