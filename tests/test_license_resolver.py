"""Tests for srcguard.validators.license_resolver module."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from srcguard.validators.base import ResolutionError
from srcguard.validators.license_resolver import (
    BundledLicenseStrategy,
    ExplicitLicenseStrategy,
    LicenseSpec,
    NoLicenseStrategy,
    resolve_license,
)

EXPECTED = "Copyright (c) 2024 Example Corp. All rights reserved."


class TestExplicitLicenseStrategy:
    """Tests for resolving the `license` parameter."""

    def test_not_applicable_without_param(self, make_env) -> None:
        assert ExplicitLicenseStrategy().resolve(make_env()) is None

    def test_blank_param_is_not_applicable(self, make_env) -> None:
        assert ExplicitLicenseStrategy().resolve(make_env(license="   ")) is None

    def test_file_url(self, make_env, license_file: Path) -> None:
        spec = ExplicitLicenseStrategy().resolve(make_env(license=f"file:{license_file}"))
        assert spec is not None
        assert spec.text == EXPECTED
        assert spec.origin == "file"
        assert spec.location == str(license_file)
        assert spec.required

    def test_file_url_with_authority(self, make_env, license_file: Path) -> None:
        spec = ExplicitLicenseStrategy().resolve(make_env(license=license_file.as_uri()))
        assert spec is not None
        assert spec.text == EXPECTED

    def test_absolute_path(self, make_env, license_file: Path) -> None:
        spec = ExplicitLicenseStrategy().resolve(make_env(license=str(license_file)))
        assert spec is not None
        assert spec.text == EXPECTED

    def test_relative_path_resolves_against_basedir(self, make_env, project: Path) -> None:
        (project / "etc").mkdir()
        (project / "etc" / "header.txt").write_text("Owned by us\n", encoding="utf-8")
        spec = ExplicitLicenseStrategy().resolve(make_env(license="etc/header.txt"))
        assert spec is not None
        assert spec.text == "Owned by us"

    def test_relative_file_url(self, make_env, project: Path) -> None:
        (project / "header.txt").write_text("Owned by us\n", encoding="utf-8")
        spec = ExplicitLicenseStrategy().resolve(make_env(license="file:header.txt"))
        assert spec is not None
        assert spec.location == str(project / "header.txt")

    def test_missing_file_is_an_error(self, make_env, tmp_path: Path) -> None:
        with pytest.raises(ResolutionError, match="file not found"):
            ExplicitLicenseStrategy().resolve(make_env(license=f"file:{tmp_path}/nope.txt"))

    def test_empty_file_is_an_error(self, make_env, tmp_path: Path) -> None:
        empty = tmp_path / "empty.txt"
        empty.write_text("", encoding="utf-8")
        with pytest.raises(ResolutionError, match="empty"):
            ExplicitLicenseStrategy().resolve(make_env(license=str(empty)))

    def test_whitespace_only_file_is_an_error(self, make_env, tmp_path: Path) -> None:
        blank = tmp_path / "blank.txt"
        blank.write_text("  \n\n", encoding="utf-8")
        with pytest.raises(ResolutionError):
            ExplicitLicenseStrategy().resolve(make_env(license=str(blank)))

    def test_binary_file_is_an_error(self, make_env, tmp_path: Path) -> None:
        binary = tmp_path / "license.bin"
        binary.write_bytes(b"\xff\xfe\x00\x81")
        with pytest.raises(ResolutionError, match="UTF-8"):
            ExplicitLicenseStrategy().resolve(make_env(license=str(binary)))

    def test_unsupported_scheme(self, make_env) -> None:
        with pytest.raises(ResolutionError, match="unsupported scheme"):
            ExplicitLicenseStrategy().resolve(make_env(license="ftp://example.com/LICENSE"))

    def test_comment_only_license_is_not_required(self, make_env, tmp_path: Path, caplog) -> None:
        """A license that is only comment markers means nothing to enforce."""
        markers = tmp_path / "markers.txt"
        markers.write_text("/*\n *\n */\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="srcguard.validators.license_resolver"):
            spec = ExplicitLicenseStrategy().resolve(make_env(license=str(markers)))
        assert spec is not None
        assert not spec.required
        assert "empty after removing comment markers" in caplog.text

    def test_commented_license_is_normalized(self, make_env, tmp_path: Path) -> None:
        commented = tmp_path / "commented.txt"
        commented.write_text(
            "# Copyright (c) 2024 Example Corp.\n#   All rights reserved.\n",
            encoding="utf-8",
        )
        spec = ExplicitLicenseStrategy().resolve(make_env(license=str(commented)))
        assert spec is not None
        assert spec.text == EXPECTED


class TestUrlResolution:
    """Tests for http(s) license references."""

    @patch("srcguard.validators.license_resolver.requests.get")
    def test_fetches_url(self, mock_get: MagicMock, make_env) -> None:
        mock_get.return_value = MagicMock(text="Remote license\n")
        mock_get.return_value.raise_for_status.return_value = None

        spec = ExplicitLicenseStrategy().resolve(
            make_env(license="https://example.com/LICENSE.txt", license_timeout="5")
        )

        assert spec is not None
        assert spec.text == "Remote license"
        assert spec.origin == "url"
        mock_get.assert_called_once_with("https://example.com/LICENSE.txt", timeout=5.0)

    @patch("srcguard.validators.license_resolver.requests.get")
    def test_http_error_is_resolution_error(self, mock_get: MagicMock, make_env) -> None:
        mock_get.return_value = MagicMock()
        mock_get.return_value.raise_for_status.side_effect = requests.HTTPError("404 Not Found")

        with pytest.raises(ResolutionError, match="404"):
            ExplicitLicenseStrategy().resolve(make_env(license="https://example.com/missing"))

    @patch("srcguard.validators.license_resolver.requests.get")
    def test_connection_error_is_resolution_error(self, mock_get: MagicMock, make_env) -> None:
        mock_get.side_effect = requests.ConnectionError("unreachable")

        with pytest.raises(ResolutionError, match="unreachable"):
            ExplicitLicenseStrategy().resolve(make_env(license="http://example.invalid/L"))


class TestClasspathResolution:
    """Tests for classpath: references and bundled resources."""

    def test_classpath_reference_in_basedir(self, make_env, project: Path) -> None:
        (project / "my-license.txt").write_text("some non-important text\n", encoding="utf-8")
        spec = ExplicitLicenseStrategy().resolve(make_env(license="classpath:my-license.txt"))
        assert spec is not None
        assert spec.origin == "resource"
        assert spec.text == "some non-important text"

    def test_classpath_reference_uses_resource_dirs(self, make_env, project: Path) -> None:
        resources = project / "resources"
        resources.mkdir()
        (resources / "header.txt").write_text("From resources\n", encoding="utf-8")
        spec = ExplicitLicenseStrategy().resolve(
            make_env(license="classpath:header.txt", resources="resources")
        )
        assert spec is not None
        assert spec.text == "From resources"

    def test_classpath_reference_not_found(self, make_env) -> None:
        with pytest.raises(ResolutionError, match="resource not found"):
            ExplicitLicenseStrategy().resolve(make_env(license="classpath:absent.txt"))

    def test_bundled_license_found(self, make_env, project: Path) -> None:
        (project / "LICENSE.txt").write_text("Bundled\n", encoding="utf-8")
        spec = BundledLicenseStrategy().resolve(make_env())
        assert spec is not None
        assert spec.text == "Bundled"
        assert spec.origin == "resource"

    def test_empty_bundled_license_is_skipped(self, make_env, project: Path, caplog) -> None:
        (project / "LICENSE.txt").write_text("\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="srcguard.validators.license_resolver"):
            assert BundledLicenseStrategy().resolve(make_env()) is None
        assert "Ignoring empty license resource" in caplog.text

    def test_empty_bundled_license_falls_through_to_next_name(self, make_env, project: Path) -> None:
        (project / "LICENSE.txt").write_text("", encoding="utf-8")
        (project / "license-header.txt").write_text("Header text\n", encoding="utf-8")
        spec = BundledLicenseStrategy().resolve(make_env())
        assert spec is not None
        assert spec.text == "Header text"

    def test_bundled_license_absent(self, make_env) -> None:
        assert BundledLicenseStrategy().resolve(make_env()) is None

    def test_no_license_strategy(self, make_env) -> None:
        spec = NoLicenseStrategy().resolve(make_env())
        assert spec == LicenseSpec.none()
        assert not spec.required


class TestResolveLicense:
    """Tests for the full resolution chain."""

    def test_explicit_wins_over_bundled(self, make_env, project: Path, license_file: Path) -> None:
        (project / "LICENSE.txt").write_text("Bundled\n", encoding="utf-8")
        spec = resolve_license(make_env(license=str(license_file)))
        assert spec.text == EXPECTED

    def test_falls_back_to_bundled(self, make_env, project: Path) -> None:
        (project / "LICENSE.txt").write_text("Bundled\n", encoding="utf-8")
        assert resolve_license(make_env()).text == "Bundled"

    def test_falls_back_to_none(self, make_env) -> None:
        spec = resolve_license(make_env())
        assert spec.origin == "none"
        assert not spec.required

    def test_empty_bundled_license_means_no_license(self, make_env, project: Path) -> None:
        (project / "LICENSE.txt").write_text("", encoding="utf-8")
        spec = resolve_license(make_env())
        assert spec.origin == "none"
        assert not spec.required

    def test_broken_explicit_reference_does_not_fall_back(self, make_env, project: Path) -> None:
        """A configured but unreadable license is never downgraded."""
        (project / "LICENSE.txt").write_text("Bundled\n", encoding="utf-8")
        with pytest.raises(ResolutionError):
            resolve_license(make_env(license="missing.txt"))

    def test_custom_chain(self, make_env) -> None:
        class Fixed:
            def resolve(self, env):
                return LicenseSpec(text="fixed", raw="fixed", origin="resource")

        assert resolve_license(make_env(), strategies=[Fixed()]).text == "fixed"

    def test_empty_chain_means_no_license(self, make_env) -> None:
        assert not resolve_license(make_env(), strategies=[]).required
