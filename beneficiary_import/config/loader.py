from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DEFAULT_MODULES, DealSettings, ImportConfig, StoreConfig

"""Config loader.

Responsibilities:
- Load YAML config/import.yml
- Validate against schema.json (shipped next to this module)
- Apply defaults (memory store, default module names, deal settings)
- Let ZOHO_ACCESS_TOKEN / ZOHO_API_BASE_URL from the environment win over the file
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "DEFAULT_CONFIG_PATH",
    "ENV_ACCESS_TOKEN",
    "ENV_API_BASE_URL",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")

ENV_ACCESS_TOKEN = "ZOHO_ACCESS_TOKEN"
ENV_API_BASE_URL = "ZOHO_API_BASE_URL"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or not valid JSON, or the config
            data violates the schema (missing keys, wrong types, unknown keys)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _store_config(raw: dict[str, Any]) -> StoreConfig:
    modules = dict(DEFAULT_MODULES)
    modules.update(raw.get("modules") or {})
    return StoreConfig(
        mode=raw.get("mode", "memory"),
        api_base_url=os.getenv(ENV_API_BASE_URL) or raw.get("api_base_url"),
        access_token=os.getenv(ENV_ACCESS_TOKEN) or raw.get("access_token"),
        timeout_seconds=float(raw.get("timeout_seconds", 30.0)),
        modules=modules,
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    store = _store_config(data["store"])
    if store.mode == "zoho" and not store.access_token:
        raise ConfigError(f"store mode 'zoho' requires an access token ({ENV_ACCESS_TOKEN} or store.access_token)")

    deal_raw = data.get("deal") or {}
    defaults = DealSettings()
    deal = DealSettings(
        program_tag=deal_raw.get("program_tag", defaults.program_tag),
        stage=deal_raw.get("stage", defaults.stage),
        layout_id=deal_raw.get("layout_id", defaults.layout_id),
    )
    return ImportConfig(
        store=store,
        deal=deal,
        source_file=data.get("source_file"),
        logs_directory=data.get("logs_directory", "./logs"),
    )
