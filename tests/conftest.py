# Shared pytest fixtures
from __future__ import annotations

import csv
import tempfile
from pathlib import Path
from typing import Any

import pytest

from beneficiary_import.crm.memory import InMemoryEntityStore
from beneficiary_import.crm.store import SearchResult, WriteResult
from beneficiary_import.logging.init import reset_logging

HEADERS = [
    "Date Assigned",
    "Number",
    "Name",
    "Phone number:",
    "Homeowner's Email:",
    "Municipality",
    "House Number and Street Name",
    "City",
    "Zip Code",
    "House Number and Street Name (Mailing)",
    "City (Mailing)",
    "Zip Code (Mailing)",
    "Air Conditioner (A/C) for temperature control",
    "Dehumidifier",
    "Humidifier",
]


def _make_row(
    email: str,
    name: str = "Juan Pérez Rivera",
    date_assigned: object = "01/15/2024",
    air_conditioner: object = "TRUE",
) -> list[object]:
    """One data row matching HEADERS."""
    return [
        date_assigned,
        "001",
        name,
        "787-555-0101",
        email,
        "San Juan",
        "123 Calle Principal",
        "San Juan",
        "00901",
        "PO Box 55",
        "Caguas",
        "00725",
        air_conditioner,
        "FALSE",
        "true",
    ]


class FlakyStore(InMemoryEntityStore):
    """In-memory store that can be told to fail selected operations."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_insert: dict[str, str] = {}  # entity_type -> error message
        self.fail_insert_once: dict[str, str] = {}
        self.fail_update: str | None = None
        self.search_error: str | None = None
        self.raise_on_search: Exception | None = None
        self.raise_on_insert: Exception | None = None

    def search_by_email(self, email: str) -> SearchResult:
        if self.raise_on_search is not None:
            raise self.raise_on_search
        if self.search_error is not None:
            return SearchResult(found=False, error=self.search_error)
        return super().search_by_email(email)

    def insert(self, entity_type: str, fields: dict[str, Any]) -> WriteResult:
        if self.raise_on_insert is not None:
            raise self.raise_on_insert
        if entity_type in self.fail_insert_once:
            self.calls.append(("insert", entity_type))
            return WriteResult(success=False, error=self.fail_insert_once.pop(entity_type))
        if entity_type in self.fail_insert:
            self.calls.append(("insert", entity_type))
            return WriteResult(success=False, error=self.fail_insert[entity_type])
        return super().insert(entity_type, fields)

    def update(self, entity_type: str, fields: dict[str, Any]) -> WriteResult:
        if self.fail_update is not None:
            self.calls.append(("update", entity_type))
            return WriteResult(success=False, error=self.fail_update)
        return super().update(entity_type, fields)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        # keep the developer's real .env / credentials out of the run
        monkeypatch.delenv("ZOHO_ACCESS_TOKEN", raising=False)
        monkeypatch.delenv("ZOHO_API_BASE_URL", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_file: ./data/beneficiaries.csv
logs_directory: ./logs
store:
  mode: memory
  timeout_seconds: 10
deal:
  program_tag: Generac
  stage: New
  layout_id: "4909080000146647839"
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_csv(temp_workdir: Path):
    """Write rows to data/<name> as CSV and return the path."""
    def _write(rows: list[list[object]], name: str = "beneficiaries.csv") -> Path:
        path = temp_workdir / "data" / name
        with path.open("w", encoding="utf-8", newline="") as f:
            csv.writer(f).writerows(["" if v is None else v for v in row] for row in rows)
        return path
    return _write


@pytest.fixture()
def headers() -> list[str]:
    return list(HEADERS)


@pytest.fixture()
def make_row():
    return _make_row


@pytest.fixture()
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture()
def flaky_store() -> FlakyStore:
    return FlakyStore()


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()
