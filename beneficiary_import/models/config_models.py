from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the beneficiary import tool.

These are the typed form of config/import.yml after schema validation in
beneficiary_import.config.loader. Environment variables loaded from .env
take precedence over the store credentials found in the file.
"""

DEFAULT_MODULES: dict[str, str] = {
    "account": "Accounts",
    "contact": "Contacts",
    "equipment_profile": "Submodule_Commercial",
    "deal": "Deals",
}


@dataclass(frozen=True)
class StoreConfig:
    """Connection settings for the CRM store.

    mode "memory" keeps everything in process (dry runs, tests);
    mode "zoho" talks to the Zoho CRM REST API.
    """
    mode: str = "memory"
    api_base_url: str | None = None
    access_token: str | None = None
    timeout_seconds: float = 30.0
    modules: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_MODULES))


@dataclass(frozen=True)
class DealSettings:
    """Fixed values stamped on every deal created by an import."""
    program_tag: str = "Generac"  # Tipo_Comercial
    stage: str = "New"
    layout_id: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for one import run."""
    store: StoreConfig
    deal: DealSettings
    source_file: str | None = None
    logs_directory: str = "./logs"
