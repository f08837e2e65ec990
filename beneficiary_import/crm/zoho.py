from __future__ import annotations

import logging
from typing import Any

import httpx

from ..models.config_models import DEFAULT_MODULES
from .store import SearchResult, StoreError, StoreRecord, WriteResult

"""Zoho CRM v2 REST adapter.

Only the three calls the importer needs are implemented:
- GET  {base}/{Contacts}/search?email=...
- POST {base}/{module}   body {"data": [fields]}
- PUT  {base}/{module}   body {"data": [fields]}  (fields carry "id")

No retries. Write failures come back as WriteResult(success=False); a failed
search raises StoreError.
"""

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://www.zohoapis.com/crm/v2"


def _lookup_id(value: Any) -> str | None:
    # lookup fields come back as {"id": ..., "name": ...}
    if isinstance(value, dict):
        value = value.get("id")
    return str(value) if value else None


class ZohoCrmStore:
    """EntityStore backed by the Zoho CRM REST API."""

    def __init__(
        self,
        access_token: str,
        *,
        api_base_url: str | None = None,
        modules: dict[str, str] | None = None,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not access_token:
            raise StoreError("Zoho access token is required")
        self.modules = dict(DEFAULT_MODULES)
        if modules:
            self.modules.update(modules)
        self._client = client or httpx.Client(
            base_url=(api_base_url or DEFAULT_API_BASE_URL).rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds),
        )
        self._client.headers["Authorization"] = f"Zoho-oauthtoken {access_token}"

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ZohoCrmStore:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _module(self, entity_type: str) -> str:
        try:
            return self.modules[entity_type]
        except KeyError as e:
            raise StoreError(f"no CRM module configured for entity type '{entity_type}'") from e

    def search_by_email(self, email: str) -> SearchResult:
        module = self._module("contact")
        try:
            resp = self._client.get(f"/{module}/search", params={"email": email})
        except httpx.HTTPError as e:
            raise StoreError(f"contact search failed: {e}") from e
        if resp.status_code == 204:
            return SearchResult(found=False)
        if resp.status_code >= 400:
            raise StoreError(f"contact search failed: HTTP {resp.status_code} {resp.text}")
        data = resp.json().get("data") or []
        records = [
            StoreRecord(id=str(item["id"]), linked_account_id=_lookup_id(item.get("Account_Name")))
            for item in data
        ]
        return SearchResult(found=bool(records), records=records)

    def _write(self, method: str, entity_type: str, fields: dict[str, Any]) -> WriteResult:
        module = self._module(entity_type)
        try:
            resp = self._client.request(method, f"/{module}", json={"data": [fields]})
        except httpx.HTTPError as e:
            return WriteResult(success=False, error=str(e))
        try:
            body = resp.json()
        except ValueError:
            body = {}
        items = body.get("data") or []
        if not items:
            message = body.get("message") or f"HTTP {resp.status_code}"
            return WriteResult(success=False, error=message)
        item = items[0]
        if item.get("status") != "success":
            return WriteResult(success=False, error=item.get("message") or item.get("code") or "unknown error")
        created_id = (item.get("details") or {}).get("id")
        logger.debug("zoho %s %s id=%s", method, module, created_id)
        return WriteResult(success=True, created_id=str(created_id) if created_id else None)

    def insert(self, entity_type: str, fields: dict[str, Any]) -> WriteResult:
        return self._write("POST", entity_type, fields)

    def update(self, entity_type: str, fields: dict[str, Any]) -> WriteResult:
        if not fields.get("id"):
            return WriteResult(success=False, error="update requires an id")
        return self._write("PUT", entity_type, fields)
