"""License text resolution.

Turns the ``license`` parameter of an environment into the normalized text
every file header is compared with. Resolution is an ordered chain of
strategies; the first one that applies wins:

1. an explicit reference (file path, ``file:`` URL, ``http(s)`` URL or
   ``classpath:`` resource name);
2. a conventionally named license resource on the resource search path;
3. no license at all, in which case header checking is skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol
from urllib.parse import unquote, urlparse

import requests

from srcguard.environment import Environment, param_float, param_paths
from srcguard.validators.base import ResolutionError
from srcguard.validators.header_matcher import normalize

logger = logging.getLogger(__name__)

LICENSE_PARAM = "license"
RESOURCES_PARAM = "resources"

# Resource names looked up on the search path when no license is configured
CONVENTIONAL_NAMES = ("LICENSE.txt", "license-header.txt")

DEFAULT_URL_TIMEOUT = 30.0

Origin = Literal["file", "url", "resource", "none"]


@dataclass(frozen=True)
class LicenseSpec:
    """License text enforced during one run.

    Attributes:
        text: Normalized license text. Empty means nothing to enforce.
        raw: Text exactly as loaded, used to render headers.
        origin: How the text was found.
        location: File path or URL the text came from, if any.
    """

    text: str
    raw: str = ""
    origin: Origin = "none"
    location: str | None = None

    @property
    def required(self) -> bool:
        """Whether files must carry a license header."""
        return bool(self.text)

    @classmethod
    def none(cls) -> LicenseSpec:
        return cls(text="")


class LicenseStrategy(Protocol):
    """One step of the resolution chain."""

    def resolve(self, env: Environment) -> LicenseSpec | None:
        """Return a spec, or None if this strategy does not apply."""
        ...


def _build_spec(raw: str, origin: Origin, location: str) -> LicenseSpec:
    if not raw.strip():
        raise ResolutionError(location, "license resource is empty")
    text = normalize(raw)
    if not text:
        logger.warning(
            "License text from %s is empty after removing comment markers; "
            "license headers will not be checked",
            location,
        )
    return LicenseSpec(text=text, raw=raw, origin=origin, location=location)


def _load_text(path: Path, reference: str) -> str:
    if not path.is_file():
        raise ResolutionError(reference, f"file not found: {path}")
    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ResolutionError(reference, f"not valid UTF-8: {e.reason}") from e
    except OSError as e:
        raise ResolutionError(reference, e.strerror or str(e)) from e
    logger.debug("Loaded license text from %s", path)
    return raw


def _read_file(path: Path, reference: str, origin: Origin = "file") -> LicenseSpec:
    return _build_spec(_load_text(path, reference), origin, str(path))


def _search_path(env: Environment) -> list[Path]:
    return param_paths(env, RESOURCES_PARAM) or [env.basedir()]


def _find_resource(env: Environment, name: str) -> Path | None:
    for root in _search_path(env):
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def _fetch_url(url: str, timeout: float | None) -> LicenseSpec:
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ResolutionError(url, str(e)) from e
    logger.debug("Fetched license text from %s", url)
    return _build_spec(response.text, "url", url)


class ExplicitLicenseStrategy:
    """Resolve the reference given in the ``license`` parameter."""

    def resolve(self, env: Environment) -> LicenseSpec | None:
        reference = env.param(LICENSE_PARAM)
        if reference is None or not reference.strip():
            return None
        reference = reference.strip()
        base = env.basedir()

        parsed = urlparse(reference)
        scheme = parsed.scheme.lower()

        # A single letter is a Windows drive, not a scheme
        if not scheme or len(scheme) == 1:
            path = Path(reference)
            return _read_file(path if path.is_absolute() else base / path, reference)

        if scheme == "file":
            path = Path(unquote(parsed.netloc + parsed.path))
            return _read_file(path if path.is_absolute() else base / path, reference)

        if scheme in ("http", "https"):
            timeout = param_float(env, "license_timeout", DEFAULT_URL_TIMEOUT)
            return _fetch_url(reference, timeout)

        if scheme == "classpath":
            name = reference[len("classpath:"):].lstrip("/")
            if not name:
                raise ResolutionError(reference, "resource name is empty")
            found = _find_resource(env, name)
            if found is None:
                roots = ", ".join(str(p) for p in _search_path(env))
                raise ResolutionError(reference, f"resource not found in: {roots}")
            return _read_file(found, reference, origin="resource")

        raise ResolutionError(reference, f"unsupported scheme '{parsed.scheme}'")


class BundledLicenseStrategy:
    """Look for a conventionally named license on the resource search path."""

    def __init__(self, names: Sequence[str] = CONVENTIONAL_NAMES) -> None:
        self.names = tuple(names)

    def resolve(self, env: Environment) -> LicenseSpec | None:
        for name in self.names:
            found = _find_resource(env, name)
            if found is None:
                continue
            raw = _load_text(found, str(found))
            if not raw.strip():
                logger.warning("Ignoring empty license resource %s", found)
                continue
            return _build_spec(raw, "resource", str(found))
        return None


class NoLicenseStrategy:
    """Fallback: the project has no required license."""

    def resolve(self, env: Environment) -> LicenseSpec | None:
        return LicenseSpec.none()


DEFAULT_STRATEGIES: tuple[LicenseStrategy, ...] = (
    ExplicitLicenseStrategy(),
    BundledLicenseStrategy(),
    NoLicenseStrategy(),
)


def resolve_license(
    env: Environment,
    strategies: Sequence[LicenseStrategy] = DEFAULT_STRATEGIES,
) -> LicenseSpec:
    """Resolve the license text to enforce for a run.

    Args:
        env: Environment of the run.
        strategies: Resolution chain, tried in order.

    Returns:
        The first spec produced by a strategy. A spec with empty text when
        no strategy applies.

    Raises:
        ResolutionError: If a configured or discovered license cannot be
            read, is empty, or uses an unsupported reference form.
    """
    for strategy in strategies:
        spec = strategy.resolve(env)
        if spec is not None:
            if spec.origin == "none":
                logger.debug("No license configured; header checks are skipped")
            return spec
    return LicenseSpec.none()
