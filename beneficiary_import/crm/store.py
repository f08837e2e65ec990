from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

"""Keyed entity store contract used by the reconciliation service.

The store is an external collaborator with three operations: search a
contact by email, insert an entity, update an entity. Implementations report
write failures as WriteResult(success=False, error=...) and may raise
StoreError for transport problems; the reconciliation service turns both
into a failed row.
"""

__all__ = [
    "ACCOUNT",
    "CONTACT",
    "EQUIPMENT_PROFILE",
    "DEAL",
    "ENTITY_TYPES",
    "StoreError",
    "StoreRecord",
    "SearchResult",
    "WriteResult",
    "EntityStore",
]

ACCOUNT = "account"
CONTACT = "contact"
EQUIPMENT_PROFILE = "equipment_profile"
DEAL = "deal"
ENTITY_TYPES: tuple[str, ...] = (ACCOUNT, CONTACT, EQUIPMENT_PROFILE, DEAL)


class StoreError(Exception):
    """Transport or protocol failure talking to the store."""


@dataclass(frozen=True)
class StoreRecord:
    """Contact as returned by an email search."""
    id: str
    linked_account_id: str | None = None


@dataclass(frozen=True)
class SearchResult:
    found: bool
    records: list[StoreRecord] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class WriteResult:
    success: bool
    created_id: str | None = None
    error: str | None = None


@runtime_checkable
class EntityStore(Protocol):
    """Operations the pipeline needs from the CRM."""

    def search_by_email(self, email: str) -> SearchResult:
        """Exact-match contact search by email."""
        ...

    def insert(self, entity_type: str, fields: dict[str, Any]) -> WriteResult:
        """Create one entity; ``created_id`` is set on success."""
        ...

    def update(self, entity_type: str, fields: dict[str, Any]) -> WriteResult:
        """Update one entity; ``fields`` must carry its ``id``."""
        ...
