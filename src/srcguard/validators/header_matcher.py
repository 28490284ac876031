"""License header matching.

Extracts the leading comment block of a source file, normalizes it and
compares it with the expected license text by exact equality.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from srcguard.validators.base import BaseValidator, ValidatorResult, Violation

if TYPE_CHECKING:
    from srcguard.validators.license_resolver import LicenseSpec
    from srcguard.validators.path_filter import SourceFile

FIX_MISSING_HEADER = "missing_license_header"
FIX_LICENSE_MISMATCH = "license_mismatch"

# PEP 263 source encoding declaration
_CODING_RE = re.compile(r"^[ \t\f]*#.*?coding[:=][ \t]*[-\w.]+")

_BLOCK_OPEN_RE = re.compile(r"^/\*+")
_BLOCK_CLOSE_RE = re.compile(r"\*+/$")
_LINE_PREFIX_RE = re.compile(r"^(?:#+|//+|\*+)")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class CommentStyle:
    """Comment syntax of a source-file family.

    Attributes:
        name: Short identifier ("hash" or "c").
        line_prefixes: Prefixes that start a single-line comment.
        block: Opening and closing delimiters of a block comment, if any.
        preamble: Whether a shebang and encoding cookie may precede the header.
    """

    name: str
    line_prefixes: tuple[str, ...]
    block: tuple[str, str] | None = None
    preamble: bool = False


HASH_STYLE = CommentStyle(name="hash", line_prefixes=("#",), preamble=True)
C_STYLE = CommentStyle(name="c", line_prefixes=("//",), block=("/*", "*/"))

EXTENSION_STYLES: dict[str, CommentStyle] = {
    **{
        ext: HASH_STYLE
        for ext in (".py", ".pyi", ".pyx", ".sh", ".bash", ".rb", ".pl", ".r", ".toml", ".yaml", ".yml")
    },
    **{
        ext: C_STYLE
        for ext in (
            ".java", ".kt", ".scala", ".groovy", ".c", ".h", ".cc", ".cpp", ".hpp",
            ".cs", ".go", ".rs", ".js", ".jsx", ".ts", ".tsx", ".swift", ".css",
        )
    },
}


def comment_style_for(path: Path | str) -> CommentStyle:
    """Return the comment style for a file, defaulting to hash comments."""
    return EXTENSION_STYLES.get(Path(path).suffix.lower(), HASH_STYLE)


def _is_preamble(line: str, index: int) -> bool:
    if index == 0 and line.startswith("#!"):
        return True
    return index < 2 and bool(_CODING_RE.match(line))


@dataclass
class HeaderScan:
    """Where the leading comment block of a file sits.

    Attributes:
        lines: Comment lines of the header, stripped.
        preamble_end: Index of the first line after a shebang or encoding line.
        header_end: Index of the first line after the last header line.
        shares_code_line: True when the header ends on a line that also
            holds code, so the header cannot be removed line by line.
    """

    lines: list[str]
    preamble_end: int = 0
    header_end: int = 0
    shares_code_line: bool = False


def scan_header(lines: Iterable[str], style: CommentStyle) -> HeaderScan:
    """Locate the leading comment block of a file.

    Consumes lines until the first one that is neither blank nor part of a
    comment, so only the header slice of a file is read. A line that opens
    and closes a block comment but continues with code counts as code.
    """
    scan = HeaderScan(lines=[])
    in_block = False

    for index, raw in enumerate(lines):
        stripped = raw.strip()

        if in_block and style.block:
            closer = style.block[1]
            end = stripped.find(closer)
            if end < 0:
                scan.lines.append(stripped)
                scan.header_end = index + 1
                continue
            in_block = False
            end += len(closer)
            scan.lines.append(stripped[:end])
            scan.header_end = index + 1
            if stripped[end:].strip():
                scan.shares_code_line = True
                break
            continue

        if not stripped:
            continue

        if style.preamble and not scan.lines and _is_preamble(stripped, index):
            scan.preamble_end = index + 1
            continue

        if stripped.startswith(style.line_prefixes):
            scan.lines.append(stripped)
            scan.header_end = index + 1
            continue

        if style.block and stripped.startswith(style.block[0]):
            opener, closer = style.block
            end = stripped.find(closer, len(opener))
            if end >= 0 and stripped[end + len(closer):].strip():
                # `/* note */ code();` is a code line
                break
            scan.lines.append(stripped)
            scan.header_end = index + 1
            in_block = end < 0
            continue

        break

    if not scan.lines:
        scan.header_end = scan.preamble_end
    return scan


def extract_header(lines: Iterable[str], style: CommentStyle) -> str | None:
    """Extract the leading comment block of a file.

    Args:
        lines: Lines of the file, with or without line terminators.
        style: Comment syntax of the file.

    Returns:
        The comment lines joined with newlines, or None if the file does
        not start with a comment.
    """
    scan = scan_header(lines, style)
    if not scan.lines:
        return None
    return "\n".join(scan.lines)


def _strip_delimiters(line: str) -> str:
    text = line.strip()
    text = _BLOCK_OPEN_RE.sub("", text)
    text = _BLOCK_CLOSE_RE.sub("", text)
    return _LINE_PREFIX_RE.sub("", text.strip())


def strip_comment_lines(text: str) -> list[str]:
    """Strip comment delimiters from every line, keeping line structure."""
    return [_strip_delimiters(line).strip() for line in text.splitlines()]


def normalize(text: str) -> str:
    """Normalize header or license text for comparison.

    Comment delimiters of every supported family are removed, whitespace
    runs collapse to single spaces and the result is trimmed.
    """
    joined = " ".join(strip_comment_lines(text))
    return _WHITESPACE_RE.sub(" ", joined).strip()


def read_header(file: SourceFile) -> str | None:
    """Read only the leading comment block of a source file.

    Raises:
        OSError: If the file cannot be opened or read.
        UnicodeDecodeError: If the header is not valid UTF-8.
    """
    with file.open() as handle:
        return extract_header(handle, comment_style_for(file.path))


def matches(file: SourceFile, spec: LicenseSpec) -> bool:
    """Check whether a file's header equals the expected license text.

    Every file matches when no license is required.
    """
    if not spec.required:
        return True
    header = read_header(file)
    if header is None:
        return False
    return normalize(header) == spec.text


def check_header(file: SourceFile, spec: LicenseSpec) -> Violation | None:
    """Check a single file and describe the failure, if any."""
    if not spec.required:
        return None
    try:
        header = read_header(file)
    except UnicodeDecodeError as e:
        return Violation(
            kind="OTHER",
            file=file.relative_path,
            message=f"Cannot decode file as UTF-8: {e.reason}",
        )
    except OSError as e:
        return Violation(
            kind="OTHER",
            file=file.relative_path,
            message=f"Cannot read file: {e.strerror or e}",
        )

    if header is None:
        return Violation(
            kind="LICENSE_MISMATCH",
            file=file.relative_path,
            line=1,
            message="Missing license header",
            fix_id=FIX_MISSING_HEADER,
        )
    if normalize(header) != spec.text:
        source = f" ({spec.location})" if spec.location else ""
        return Violation(
            kind="LICENSE_MISMATCH",
            file=file.relative_path,
            line=1,
            message=f"License header does not match the expected text{source}",
            fix_id=FIX_LICENSE_MISMATCH,
        )
    return None


class LicenseHeaderValidator(BaseValidator):
    """Checks that every source file starts with the configured license."""

    name = "license-header"

    def validate(self) -> ValidatorResult:
        if not self.license.required:
            return ValidatorResult(
                name=self.name,
                status="skipped",
                violations=[],
                files_checked=0,
            )

        violations: list[Violation] = []
        for file in self.files:
            violation = check_header(file, self.license)
            if violation is not None:
                violations.append(violation)

        return self._result(violations)
