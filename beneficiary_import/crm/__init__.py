"""CRM entity store contract and adapters."""

from .memory import InMemoryEntityStore
from .store import (
    ACCOUNT,
    CONTACT,
    DEAL,
    EQUIPMENT_PROFILE,
    EntityStore,
    SearchResult,
    StoreError,
    StoreRecord,
    WriteResult,
)

__all__ = [
    "ACCOUNT",
    "CONTACT",
    "DEAL",
    "EQUIPMENT_PROFILE",
    "EntityStore",
    "InMemoryEntityStore",
    "SearchResult",
    "StoreError",
    "StoreRecord",
    "WriteResult",
]
