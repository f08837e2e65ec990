from __future__ import annotations

import itertools
import logging
from typing import Any

from .fields import CONTACT_ACCOUNT_FIELD, CONTACT_EMAIL_FIELD
from .store import CONTACT, ENTITY_TYPES, SearchResult, StoreRecord, WriteResult

"""In-process entity store.

Backs dry runs (``--dry-run`` / ``store.mode: memory``) and tests. Records
live in plain dicts for the life of the object; nothing is persisted.
"""

logger = logging.getLogger(__name__)


class InMemoryEntityStore:
    """Dict-backed EntityStore with sequential ids ("<entity_type>-<n>")."""

    def __init__(self) -> None:
        self.records: dict[str, dict[str, dict[str, Any]]] = {t: {} for t in ENTITY_TYPES}
        self._ids = itertools.count(1)
        self.calls: list[tuple[str, str]] = []  # (operation, entity_type) in call order

    def search_by_email(self, email: str) -> SearchResult:
        self.calls.append(("search", CONTACT))
        matches = [
            StoreRecord(id=rid, linked_account_id=rec.get(CONTACT_ACCOUNT_FIELD) or None)
            for rid, rec in self.records[CONTACT].items()
            if rec.get(CONTACT_EMAIL_FIELD) == email
        ]
        return SearchResult(found=bool(matches), records=matches)

    def insert(self, entity_type: str, fields: dict[str, Any]) -> WriteResult:
        self.calls.append(("insert", entity_type))
        if entity_type not in self.records:
            return WriteResult(success=False, error=f"unknown entity type: {entity_type}")
        rid = f"{entity_type}-{next(self._ids)}"
        self.records[entity_type][rid] = dict(fields)
        logger.debug("memory insert %s id=%s", entity_type, rid)
        return WriteResult(success=True, created_id=rid)

    def update(self, entity_type: str, fields: dict[str, Any]) -> WriteResult:
        self.calls.append(("update", entity_type))
        rid = fields.get("id")
        table = self.records.get(entity_type)
        if table is None:
            return WriteResult(success=False, error=f"unknown entity type: {entity_type}")
        if not rid or rid not in table:
            return WriteResult(success=False, error=f"{entity_type} not found: {rid}")
        table[rid].update({k: v for k, v in fields.items() if k != "id"})
        return WriteResult(success=True, created_id=None)

    def count(self, entity_type: str) -> int:
        return len(self.records[entity_type])
