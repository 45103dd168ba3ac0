"""Configuration management for barn.

Loads settings from a YAML configuration file with environment variable
overrides. The resulting Settings object is frozen: it is built once at
startup and shared read-only by every request.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from barn.domain.models import Group, User

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "barn.yaml"
DEFAULTS_LOCATION = "using defaults"


class ConfigError(Exception):
    """Raised when the configuration cannot be loaded or is unusable."""

    def __init__(self, message: str, location: str = "") -> None:
        super().__init__(message)
        self.location = location


class OptionsConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    root: Path = Field(default=Path("."), description="Directory holding the executables")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=1, le=65535)


class LoggingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for barn.

    Loads from a YAML file and supports environment variable overrides
    such as ``BARN_OPTIONS__PORT=9000``.
    """

    model_config = {
        "env_prefix": "BARN_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
    }

    options: OptionsConfig = Field(default_factory=OptionsConfig)
    users: list[User] = Field(default_factory=list)
    groups: list[Group] = Field(default_factory=list)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats the YAML file, which is passed as init kwargs.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def default_config_paths() -> list[Path]:
    """Candidate config files, in lookup order."""
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return [
        Path(".") / CONFIG_FILENAME,
        Path(config_home) / "barn" / CONFIG_FILENAME,
    ]


def load_settings(config_path: Path | str | None = None) -> tuple[Settings, str]:
    """Load settings from YAML + .env + environment variables.

    An explicit ``config_path`` must exist. Without one, ``./barn.yaml``
    and then the user's config directory are tried, falling back to
    defaults.

    Returns:
        The settings and a human-readable description of where they
        came from.

    Raises:
        ConfigError: If the file cannot be read or fails validation.
    """
    if config_path is not None:
        path: Path | None = Path(config_path)
        if not path.is_file():
            raise ConfigError(f"Config file {path} not found", location=str(path))
    else:
        path = next((p for p in default_config_paths() if p.is_file()), None)

    yaml_data = {}
    location = DEFAULTS_LOCATION
    if path is not None:
        location = str(path)
        try:
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Unable to read config: {e}", location=location) from e
        if not isinstance(yaml_data, dict):
            raise ConfigError("Invalid config: expected a mapping at the top level", location)
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("No config file found, using defaults + env vars")

    try:
        settings = Settings(**yaml_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config: {e}", location=location) from e
    return settings, location
