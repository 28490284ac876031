"""Source file enumeration for srcguard validators.

Walks a project tree and yields the source files eligible for checking,
skipping build output, virtual environments and tool caches. Nothing
outside the project root is ever yielded.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from srcguard.validators.base import BaseDirectoryError

logger = logging.getLogger(__name__)

# Extensions checked when nothing else is configured
DEFAULT_EXTENSIONS = (".py", ".pyi")

# Directories to exclude when scanning for source files
IGNORED_DIRS = frozenset(
    {
        ".venv",
        "venv",
        "node_modules",
        "__pycache__",
        ".git",
        ".hg",
        ".svn",
        "dist",
        "build",
        "target",
        ".eggs",
        ".tox",
        ".nox",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        "site-packages",
        "generated-sources",
    }
)

OnError = Callable[[OSError], None]


@dataclass(frozen=True)
class SourceFile:
    """One candidate file under the base directory.

    Attributes:
        path: Absolute path to the file.
        relative_path: POSIX-style path relative to the base directory.
    """

    path: Path
    relative_path: str

    @property
    def suffix(self) -> str:
        return self.path.suffix.lower()

    def open(self) -> IO[str]:
        """Open the file for lazy, line-by-line reading."""
        return open(self.path, encoding="utf-8")


def _is_inside(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def _normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    result = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        result.add(ext if ext.startswith(".") else f".{ext}")
    return frozenset(result)


def iter_source_files(
    root: Path,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    exclude_dirs: Iterable[str] = IGNORED_DIRS,
    on_error: OnError | None = None,
) -> Iterator[SourceFile]:
    """Lazily yield source files under ``root``.

    Directory symlinks are never followed. File symlinks are kept only if
    their target resolves inside the root.

    Args:
        root: Project base directory.
        extensions: File extensions to include (case-insensitive).
        exclude_dirs: Directory names pruned anywhere in the tree.
        on_error: Called with the OSError for any sub-directory that cannot
            be listed. Errors are ignored when None.

    Yields:
        SourceFile for every eligible file, in directory-traversal order.

    Raises:
        BaseDirectoryError: If the root is missing or cannot be listed.
    """
    try:
        real_root = root.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise BaseDirectoryError(root, str(e)) from e
    if not real_root.is_dir():
        raise BaseDirectoryError(root, "not a directory")
    try:
        with os.scandir(real_root):
            pass
    except OSError as e:
        raise BaseDirectoryError(root, e.strerror or str(e)) from e

    wanted = _normalize_extensions(extensions)
    skipped = frozenset(exclude_dirs)

    def _walk_error(err: OSError) -> None:
        if on_error is not None:
            on_error(err)

    for dirpath, dirnames, filenames in os.walk(real_root, onerror=_walk_error):
        # Prune in place so os.walk does not descend
        dirnames[:] = sorted(d for d in dirnames if d not in skipped)
        current = Path(dirpath)
        for name in sorted(filenames):
            candidate = current / name
            if candidate.suffix.lower() not in wanted:
                continue
            if candidate.is_symlink():
                try:
                    target = candidate.resolve(strict=True)
                except (OSError, RuntimeError):
                    continue
                if not _is_inside(target, real_root):
                    logger.debug("Skipping symlink escaping the root: %s", candidate)
                    continue
            yield SourceFile(
                path=candidate,
                relative_path=candidate.relative_to(real_root).as_posix(),
            )


class SourceTree:
    """Restartable view of the source files under a root.

    Every iteration starts a fresh directory walk, so the same tree can be
    scanned repeatedly without shared iterator state.
    """

    def __init__(
        self,
        root: Path,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        exclude_dirs: Iterable[str] = IGNORED_DIRS,
        on_error: OnError | None = None,
    ) -> None:
        self.root = root
        self.extensions = tuple(extensions)
        self.exclude_dirs = frozenset(exclude_dirs)
        self.on_error = on_error

    def __iter__(self) -> Iterator[SourceFile]:
        return iter_source_files(
            self.root,
            extensions=self.extensions,
            exclude_dirs=self.exclude_dirs,
            on_error=self.on_error,
        )

    def collect(self) -> list[SourceFile]:
        """Walk the tree once and return the files sorted by relative path."""
        files = sorted(self, key=lambda f: f.relative_path)
        logger.debug("Enumerated %d source file(s) under %s", len(files), self.root)
        return files
