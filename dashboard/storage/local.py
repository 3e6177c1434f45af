"""Local persistence -- a string key-value store plus the backend on top of it.

The store mirrors the browser's ``localStorage`` contract: string keys,
string values, last write wins. Records are kept as JSON text, the
current user under one fixed key and analyses as one list per tenant
under ``{prefix}-{tenant_id}``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Protocol

from dashboard.models.domain import AnalysisData, User, timestamp_sort_key

from .base import LocalStorageError, StorageBackend

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store. Contents are lost on exit."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStore:
    """All keys in one JSON document on disk, rewritten atomically."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning(f"Could not read local storage {self.path}: {e}")
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning(f"Local storage {self.path} is corrupt, ignoring it")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, items: dict[str, str]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(items, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise LocalStorageError(f"Could not write local storage {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._read()
        if key in items:
            del items[key]
            self._write(items)


def _load_json(raw: Optional[str], key: str) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning(f"Discarding unparseable local value under '{key}'")
        return None


class LocalBackend(StorageBackend):
    """Tenant-partitioned records kept in a KeyValueStore.

    Store access is blocking (``JsonFileStore`` hits the disk), so every
    async method runs its read-modify-write in a worker thread.
    """

    name = "local"

    def __init__(
        self,
        store: KeyValueStore,
        user_key: str = "ifood-user",
        analyses_prefix: str = "ifood-analyses",
    ) -> None:
        self.store = store
        self.user_key = user_key
        self.analyses_prefix = analyses_prefix

    def analyses_key(self, tenant_id: str) -> str:
        return f"{self.analyses_prefix}-{tenant_id}"

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def _fetch_user(self) -> Optional[User]:
        data = _load_json(self.store.get_item(self.user_key), self.user_key)
        if not isinstance(data, dict):
            return None
        if not data.get("id") or not data.get("tenantId"):
            return None
        return User.from_dict(data)

    async def fetch_user(self) -> Optional[User]:
        return await asyncio.to_thread(self._fetch_user)

    async def save_user(self, user: User) -> None:
        payload = json.dumps(user.to_dict(), ensure_ascii=False)
        await asyncio.to_thread(self.store.set_item, self.user_key, payload)
        logger.info(f"User {user.id} saved to local storage")

    async def clear_user(self) -> None:
        await asyncio.to_thread(self.store.remove_item, self.user_key)

    # ------------------------------------------------------------------
    # Analyses
    # ------------------------------------------------------------------

    def _read_records(self, tenant_id: str) -> list[dict[str, Any]]:
        key = self.analyses_key(tenant_id)
        data = _load_json(self.store.get_item(key), key)
        if not isinstance(data, list):
            return []
        # Never return another tenant's record, even from a hand-edited list.
        return [
            item for item in data
            if isinstance(item, dict) and item.get("tenantId") == tenant_id
        ]

    def _write_records(self, tenant_id: str, records: list[dict[str, Any]]) -> None:
        self.store.set_item(
            self.analyses_key(tenant_id), json.dumps(records, ensure_ascii=False)
        )

    def read_tenant_list(self, tenant_id: str) -> list[AnalysisData]:
        """Stored analyses of a tenant in insertion order.

        A malformed entry is skipped on its own; the rest of the list is
        still returned.
        """
        analyses = []
        for item in self._read_records(tenant_id):
            try:
                analyses.append(AnalysisData.from_dict(item))
            except ValueError as e:
                logger.warning(
                    f"Skipping malformed local analysis {item.get('id')} of tenant {tenant_id}: {e}"
                )
        return analyses

    def _insert(self, analysis: AnalysisData) -> None:
        records = self._read_records(analysis.tenant_id)
        records.append(analysis.to_dict())
        self._write_records(analysis.tenant_id, records)

    async def insert_analysis(self, analysis: AnalysisData) -> None:
        await asyncio.to_thread(self._insert, analysis)

    def _upsert(self, analyses: list[AnalysisData]) -> None:
        by_tenant: dict[str, list[AnalysisData]] = {}
        for analysis in analyses:
            by_tenant.setdefault(analysis.tenant_id, []).append(analysis)

        for tenant_id, batch in by_tenant.items():
            records = self._read_records(tenant_id)
            positions = {item.get("id"): i for i, item in enumerate(records)}
            for analysis in batch:
                if analysis.id in positions:
                    records[positions[analysis.id]] = analysis.to_dict()
                else:
                    positions[analysis.id] = len(records)
                    records.append(analysis.to_dict())
            self._write_records(tenant_id, records)

    async def upsert_analyses(self, analyses: list[AnalysisData]) -> None:
        await asyncio.to_thread(self._upsert, analyses)

    def _list(self, tenant_id: str, user_id: Optional[str]) -> list[AnalysisData]:
        analyses = self.read_tenant_list(tenant_id)
        if user_id is not None:
            analyses = [a for a in analyses if a.user_id == user_id]
        # Newest first by instant, as the remote query orders them.
        return sorted(analyses, key=lambda a: timestamp_sort_key(a.timestamp), reverse=True)

    async def list_analyses(
        self, tenant_id: str, user_id: Optional[str] = None
    ) -> list[AnalysisData]:
        return await asyncio.to_thread(self._list, tenant_id, user_id)

    def _delete(self, analysis_id: str, tenant_id: str) -> None:
        records = self._read_records(tenant_id)
        remaining = [item for item in records if item.get("id") != analysis_id]
        self._write_records(tenant_id, remaining)

    async def delete_analysis(self, analysis_id: str, tenant_id: str) -> None:
        await asyncio.to_thread(self._delete, analysis_id, tenant_id)
