"""Tests for srcguard configuration management."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from srcguard.config import (
    SrcguardConfig,
    find_config_file,
    load_config,
)


class TestSrcguardConfig:
    """Tests for the SrcguardConfig dataclass."""

    def test_default_values(self) -> None:
        """Test that default values are set correctly."""
        config = SrcguardConfig()
        assert config.license is None
        assert config.resources == []
        assert config.extensions == [".py", ".pyi"]
        assert config.exclude == []
        assert config.style == "ruff"
        assert config.style_select == ["E", "W", "F", "C90", "N"]
        assert config.line_length == 100
        assert config.max_complexity == 10
        assert config.parallel is False

    def test_custom_values(self) -> None:
        """Test that custom values can be set."""
        config = SrcguardConfig(
            license="file:LICENSE.txt",
            extensions=[".java"],
            style="off",
            line_length=120,
        )
        assert config.license == "file:LICENSE.txt"
        assert config.extensions == [".java"]
        assert config.style == "off"
        assert config.line_length == 120

    def test_validation_unknown_style(self) -> None:
        """Test that unknown style engines are refused."""
        with pytest.raises(ValueError, match="style must be one of"):
            SrcguardConfig(style="pylint")

    def test_validation_empty_extensions(self) -> None:
        """Test that at least one extension is required."""
        with pytest.raises(ValueError, match="extensions must not be empty"):
            SrcguardConfig(extensions=[])

    def test_validation_line_length(self) -> None:
        """Test that line_length must be positive."""
        with pytest.raises(ValueError, match="line_length must be a positive integer"):
            SrcguardConfig(line_length=0)

    def test_validation_max_complexity(self) -> None:
        """Test that max_complexity must be positive."""
        with pytest.raises(ValueError, match="max_complexity must be a positive integer"):
            SrcguardConfig(max_complexity=-1)

    def test_validation_list_fields(self) -> None:
        """Test that list fields must hold strings."""
        with pytest.raises(ValueError, match="exclude must be a list of strings"):
            SrcguardConfig(exclude="build")  # type: ignore[arg-type]

    def test_to_params(self) -> None:
        """Test rendering as environment parameters."""
        config = SrcguardConfig(
            license="classpath:LICENSE.txt",
            resources=["etc", "res"],
            extensions=[".py"],
            exclude=["build"],
            style_ignore=["E203", "W503"],
        )
        params = config.to_params()
        assert params["license"] == "classpath:LICENSE.txt"
        assert params["resources"] == os.pathsep.join(["etc", "res"])
        assert params["extensions"] == ".py"
        assert params["exclude"] == "build"
        assert params["style_ignore"] == "E203,W503"
        assert params["line_length"] == "100"

    def test_to_params_without_license(self) -> None:
        """Test that an unset license is not passed on."""
        params = SrcguardConfig().to_params()
        assert "license" not in params
        assert "resources" not in params

    def test_to_environment(self, tmp_path: Path) -> None:
        """Test building the run environment."""
        env = SrcguardConfig(license="LICENSE.txt").to_environment(tmp_path)
        assert env.basedir() == tmp_path
        assert env.param("license") == "LICENSE.txt"
        assert env.tempdir() == tmp_path / "build" / ".srcguard"
        assert env.tempdir().is_dir()

    def test_to_environment_custom_tempdir(self, tmp_path: Path) -> None:
        """Test that an explicit scratch directory is used."""
        env = SrcguardConfig().to_environment(tmp_path, tempdir=tmp_path / "scratch")
        assert env.tempdir() == tmp_path / "scratch"


class TestFindConfigFile:
    """Tests for find_config_file function."""

    def test_find_in_current_dir(self, tmp_path: Path) -> None:
        """Test finding config file in current directory."""
        config_file = tmp_path / ".srcguardrc"
        config_file.write_text("style = 'off'\n")

        assert find_config_file(".srcguardrc", tmp_path) == config_file

    def test_find_in_parent_dir(self, tmp_path: Path) -> None:
        """Test finding config file in parent directory."""
        config_file = tmp_path / ".srcguardrc"
        config_file.write_text("style = 'off'\n")
        child_dir = tmp_path / "a" / "b"
        child_dir.mkdir(parents=True)

        assert find_config_file(".srcguardrc", child_dir) == config_file

    def test_not_found(self, tmp_path: Path) -> None:
        """Test returning None when config file not found."""
        assert find_config_file(".srcguardrc-missing", tmp_path) is None

    def test_prefers_closest_file(self, tmp_path: Path) -> None:
        """Test that the closest config file is found first."""
        (tmp_path / ".srcguardrc").write_text("style = 'off'\n")
        child_dir = tmp_path / "child"
        child_dir.mkdir()
        child_config = child_dir / ".srcguardrc"
        child_config.write_text("style = 'ruff'\n")

        assert find_config_file(".srcguardrc", child_dir) == child_config


class TestLoadFromFiles:
    """Tests for loading configuration from .srcguardrc and pyproject.toml."""

    def test_load_valid_srcguardrc(self, tmp_path: Path) -> None:
        """Test loading a complete .srcguardrc file."""
        (tmp_path / ".srcguardrc").write_text(
            'license = "file:etc/LICENSE.txt"\n'
            'extensions = [".py", ".pyx"]\n'
            'style-ignore = ["E203"]\n'
            "line-length = 88\n"
            "parallel = true\n"
        )

        config = load_config(start_dir=tmp_path)

        assert config.license == "file:etc/LICENSE.txt"
        assert config.extensions == [".py", ".pyx"]
        assert config.style_ignore == ["E203"]
        assert config.line_length == 88
        assert config.parallel is True

    def test_load_from_tool_srcguard_section(self, tmp_path: Path) -> None:
        """Test loading from the [tool.srcguard] section."""
        (tmp_path / "pyproject.toml").write_text(
            '[project]\nname = "demo"\n\n'
            '[tool.srcguard]\nlicense = "classpath:HEADER.txt"\nresources = ["etc"]\n'
        )

        config = load_config(start_dir=tmp_path)

        assert config.license == "classpath:HEADER.txt"
        assert config.resources == ["etc"]

    def test_no_tool_srcguard_section(self, tmp_path: Path) -> None:
        """Test defaults when pyproject.toml has no srcguard section."""
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "demo"\n')

        assert load_config(start_dir=tmp_path) == SrcguardConfig()

    def test_ignore_unknown_fields(self, tmp_path: Path) -> None:
        """Test that unknown fields are ignored."""
        (tmp_path / ".srcguardrc").write_text('style = "off"\nunknown = "value"\n')

        assert load_config(start_dir=tmp_path).style == "off"

    def test_invalid_srcguardrc_toml(self, tmp_path: Path) -> None:
        """Test that invalid TOML in .srcguardrc is ignored."""
        (tmp_path / ".srcguardrc").write_text("this is not [valid toml\n")

        assert load_config(start_dir=tmp_path) == SrcguardConfig()

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        """Test that invalid values surface as ValueError."""
        (tmp_path / ".srcguardrc").write_text("line-length = 0\n")

        with pytest.raises(ValueError, match="line_length"):
            load_config(start_dir=tmp_path)


class TestLoadFromEnv:
    """Tests for SRCGUARD_* environment variables."""

    def test_license_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test loading license from environment."""
        monkeypatch.setenv("SRCGUARD_LICENSE", "https://example.com/LICENSE")

        assert load_config(start_dir=tmp_path).license == "https://example.com/LICENSE"

    def test_list_and_int_values_from_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that flat string values are converted."""
        monkeypatch.setenv("SRCGUARD_EXTENSIONS", ".py, .pyi ,.pyx")
        monkeypatch.setenv("SRCGUARD_MAX_COMPLEXITY", "12")
        monkeypatch.setenv("SRCGUARD_PARALLEL", "yes")

        config = load_config(start_dir=tmp_path)

        assert config.extensions == [".py", ".pyi", ".pyx"]
        assert config.max_complexity == 12
        assert config.parallel is True

    def test_non_integer_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that non-integer values are rejected."""
        monkeypatch.setenv("SRCGUARD_LINE_LENGTH", "wide")

        with pytest.raises(ValueError, match="line_length must be an integer"):
            load_config(start_dir=tmp_path)


class TestConfigPrecedence:
    """Tests for the precedence chain."""

    @pytest.fixture
    def layered(self, tmp_path: Path) -> Path:
        """Project with both pyproject.toml and .srcguardrc."""
        (tmp_path / "pyproject.toml").write_text(
            '[tool.srcguard]\nlicense = "from-pyproject.txt"\nline-length = 80\nstyle = "off"\n'
        )
        (tmp_path / ".srcguardrc").write_text(
            'license = "from-rc.txt"\nline-length = 90\n'
        )
        return tmp_path

    def test_srcguardrc_overrides_pyproject(self, layered: Path) -> None:
        config = load_config(start_dir=layered)
        assert config.license == "from-rc.txt"
        assert config.line_length == 90
        assert config.style == "off"

    def test_env_overrides_files(self, layered: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SRCGUARD_LICENSE", "from-env.txt")
        config = load_config(start_dir=layered)
        assert config.license == "from-env.txt"
        assert config.line_length == 90

    def test_cli_overrides_all(self, layered: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SRCGUARD_LICENSE", "from-env.txt")
        config = load_config(cli_overrides={"license": "from-cli.txt", "style": "ruff"}, start_dir=layered)
        assert config.license == "from-cli.txt"
        assert config.style == "ruff"

    def test_none_cli_values_ignored(self, layered: Path) -> None:
        config = load_config(cli_overrides={"license": None, "bogus": "x"}, start_dir=layered)
        assert config.license == "from-rc.txt"
