"""Configuration management for barn.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides, and reports at startup which
groups may run which executables.
"""

from barn.config.settings import ConfigError, Settings, load_settings

__all__ = ["ConfigError", "Settings", "load_settings"]
