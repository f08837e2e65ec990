"""Configuration loading (YAML + JSON schema + .env overrides)."""

from .loader import ConfigError, load_config

__all__ = ["ConfigError", "load_config"]
