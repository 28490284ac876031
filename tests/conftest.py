"""Pytest configuration and fixtures for srcguard tests."""

import os
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

# Set a fixed terminal width to prevent line wrapping issues in CI
# This must be set before any Rich imports
os.environ.setdefault("COLUMNS", "200")
os.environ.setdefault("LINES", "50")
# Disable Rich's terminal detection to ensure consistent output
os.environ.setdefault("TERM", "dumb")

from srcguard.environment import ProjectEnvironment  # noqa: E402
from srcguard.validators.style_engine import StyleConfig, StyleRecord  # noqa: E402

LICENSE_TEXT = "Copyright (c) 2024 Example Corp.\nAll rights reserved.\n"


class FakeStyleEngine:
    """Style engine double returning canned records.

    Records are given with paths relative to the project; they are
    reported back as absolute paths like a real engine would.
    """

    def __init__(self, records: Sequence[tuple[str, int, str, str]] = ()) -> None:
        self.records = list(records)
        self.calls: list[tuple[list[Path], StyleConfig, Path]] = []

    def run(self, files: Sequence[Path], config: StyleConfig, workdir: Path) -> list[StyleRecord]:
        self.calls.append((list(files), config, workdir))
        by_name = {f.as_posix(): f for f in files}
        result: list[StyleRecord] = []
        for rel, line, code, message in self.records:
            match = next((p for name, p in by_name.items() if name.endswith("/" + rel)), None)
            result.append(
                StyleRecord(
                    path=str(match) if match else rel,
                    line=line,
                    column=1,
                    code=code,
                    message=message,
                )
            )
        return result


@pytest.fixture(autouse=True)
def _clean_srcguard_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep SRCGUARD_* variables from the outer shell out of tests."""
    for key in list(os.environ):
        if key.startswith("SRCGUARD_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Create an empty project directory."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def make_env(project: Path, tmp_path: Path) -> Callable[..., ProjectEnvironment]:
    """Factory building an environment rooted at the project directory."""

    def _make(**params: str) -> ProjectEnvironment:
        return ProjectEnvironment(base=project, temp=tmp_path / "scratch", params=params)

    return _make


@pytest.fixture
def fake_engine() -> FakeStyleEngine:
    """A style engine reporting nothing until records are added."""
    return FakeStyleEngine()


@pytest.fixture
def license_file(tmp_path: Path) -> Path:
    """A license text file outside the project."""
    path = tmp_path / "license.txt"
    path.write_text(LICENSE_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def engine_with() -> Callable[..., FakeStyleEngine]:
    """Factory for a style engine reporting the given records."""
    return FakeStyleEngine
