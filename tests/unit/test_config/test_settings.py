"""Tests for configuration loading and validation."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from barn.config.settings import (
    DEFAULTS_LOCATION,
    ConfigError,
    LoggingConfig,
    OptionsConfig,
    Settings,
    default_config_paths,
    load_settings,
)

SAMPLE_YAML = r"""
options:
  root: ./scripts
  host: 0.0.0.0
  port: 9090
users:
  - username: alice
    password: pw1
    groups: [g1, ops]
groups:
  - name: g1
    regex: '^backup.*\.sh$'
  - name: passwordless
    regex: '^status\.sh$'
logging:
  level: DEBUG
"""


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run each test from an empty directory with no BARN_* variables."""
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for key in [k for k in os.environ if k.startswith("BARN_")]:
        monkeypatch.delenv(key)
    return workdir


class TestSettings:
    def test_default_settings(self) -> None:
        settings = Settings()
        assert settings.options.root == Path(".")
        assert settings.options.host == "127.0.0.1"
        assert settings.options.port == 8080
        assert settings.users == []
        assert settings.groups == []
        assert settings.logging.level == "INFO"

    def test_options_defaults(self) -> None:
        options = OptionsConfig()
        assert options.port == 8080

    def test_logging_defaults(self) -> None:
        assert LoggingConfig().file is None

    def test_port_range(self) -> None:
        with pytest.raises(ValidationError):
            OptionsConfig(port=70000)

    def test_settings_are_frozen(self) -> None:
        settings = Settings()
        with pytest.raises(ValidationError):
            settings.options = OptionsConfig(port=1)  # type: ignore[misc]
        with pytest.raises(ValidationError):
            settings.options.port = 1  # type: ignore[misc]

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BARN_OPTIONS__PORT", "9999")
        assert Settings().options.port == 9999


class TestLoadSettings:
    def test_explicit_file(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.yaml"
        path.write_text(SAMPLE_YAML)
        settings, location = load_settings(path)
        assert location == str(path)
        assert settings.options.root == Path("./scripts")
        assert settings.options.host == "0.0.0.0"
        assert settings.options.port == 9090
        assert settings.users[0].username == "alice"
        assert settings.users[0].groups == frozenset({"g1", "ops"})
        assert [g.name for g in settings.groups] == ["g1", "passwordless"]
        assert settings.groups[0].matches("backup-db.sh")
        assert settings.logging.level == "DEBUG"

    def test_env_beats_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "custom.yaml"
        path.write_text(SAMPLE_YAML)
        monkeypatch.setenv("BARN_OPTIONS__PORT", "7000")
        settings, _ = load_settings(path)
        assert settings.options.port == 7000
        assert settings.options.host == "0.0.0.0"

    def test_explicit_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nonexistent.yaml")

    def test_local_file_found(self, isolated_env: Path) -> None:
        (isolated_env / "barn.yaml").write_text("options:\n  port: 8181\n")
        settings, location = load_settings()
        assert settings.options.port == 8181
        assert location == str(Path(".") / "barn.yaml")

    def test_user_config_dir_found(self, tmp_path: Path) -> None:
        config_dir = tmp_path / "xdg" / "barn"
        config_dir.mkdir(parents=True)
        (config_dir / "barn.yaml").write_text("options:\n  port: 8282\n")
        settings, location = load_settings()
        assert settings.options.port == 8282
        assert location == str(config_dir / "barn.yaml")

    def test_lookup_order(self, tmp_path: Path) -> None:
        assert default_config_paths() == [
            Path(".") / "barn.yaml",
            tmp_path / "xdg" / "barn" / "barn.yaml",
        ]

    def test_defaults_when_nothing_found(self) -> None:
        settings, location = load_settings()
        assert location == DEFAULTS_LOCATION
        assert settings.options.port == 8080

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        settings, _ = load_settings(path)
        assert settings.options.port == 8080

    def test_malformed_regex(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("groups:\n  - name: g1\n    regex: '(unclosed'\n")
        with pytest.raises(ConfigError, match="Invalid config") as exc_info:
            load_settings(path)
        assert exc_info.value.location == str(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("options: [unclosed\n")
        with pytest.raises(ConfigError, match="Unable to read config"):
            load_settings(path)

    def test_non_mapping_top_level(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path)

    def test_user_missing_password(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("users:\n  - username: alice\n    groups: []\n")
        with pytest.raises(ConfigError):
            load_settings(path)
