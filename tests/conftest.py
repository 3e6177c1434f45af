"""Shared test fixtures for the dashboard test suite."""

from __future__ import annotations

import copy
from types import SimpleNamespace
from typing import Any, Optional

import pytest

from dashboard.models.domain import AnalysisData, FormInput, User
from dashboard.storage.gateway import PersistenceGateway, RuntimeContext
from dashboard.storage.local import LocalBackend, MemoryStore
from dashboard.storage.remote import SupabaseBackend


class FakeSupabaseError(Exception):
    pass


class _FakeQuery:
    """Chainable stand-in for a postgrest request builder."""

    def __init__(self, client: FakeSupabaseClient, table: str) -> None:
        self._client = client
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._on_conflict: Optional[str] = None
        self._filters: list[tuple[str, Any]] = []
        self._order: Optional[tuple[str, bool]] = None
        self._single = False

    def select(self, columns: str = "*") -> _FakeQuery:
        self._op = "select"
        return self

    def insert(self, payload: Any) -> _FakeQuery:
        self._op, self._payload = "insert", payload
        return self

    def upsert(self, payload: Any, on_conflict: str = "id") -> _FakeQuery:
        self._op, self._payload, self._on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self) -> _FakeQuery:
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> _FakeQuery:
        self._filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> _FakeQuery:
        self._order = (column, desc)
        return self

    def single(self) -> _FakeQuery:
        self._single = True
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(row.get(col) == val for col, val in self._filters)

    def execute(self) -> SimpleNamespace:
        self._client.calls.append((self._table, self._op))
        if self._client.fail:
            raise FakeSupabaseError("connection refused")

        rows = self._client.tables.setdefault(self._table, [])
        if self._op == "select":
            found = [copy.deepcopy(r) for r in rows if self._matches(r)]
            if self._order:
                column, desc = self._order
                found.sort(key=lambda r: r.get(column) or "", reverse=desc)
            if self._single:
                if len(found) != 1:
                    raise FakeSupabaseError("JSON object requested, multiple (or no) rows returned")
                return SimpleNamespace(data=found[0])
            return SimpleNamespace(data=found)

        if self._op == "insert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            existing = {r["id"] for r in rows}
            for row in payload:
                if row["id"] in existing:
                    raise FakeSupabaseError("duplicate key value violates unique constraint")
            rows.extend(copy.deepcopy(payload))
            return SimpleNamespace(data=payload)

        if self._op == "upsert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            key = self._on_conflict or "id"
            for row in payload:
                for i, existing_row in enumerate(rows):
                    if existing_row.get(key) == row.get(key):
                        rows[i] = copy.deepcopy(row)
                        break
                else:
                    rows.append(copy.deepcopy(row))
            return SimpleNamespace(data=payload)

        if self._op == "delete":
            removed = [r for r in rows if self._matches(r)]
            rows[:] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=removed)

        raise AssertionError(f"unexpected op {self._op}")


class _FakeAuth:
    def __init__(self, client: FakeSupabaseClient) -> None:
        self._client = client
        self.user_id: Optional[str] = None

    def get_user(self) -> Optional[SimpleNamespace]:
        if self._client.fail:
            raise FakeSupabaseError("auth unreachable")
        if self.user_id is None:
            return None
        return SimpleNamespace(user=SimpleNamespace(id=self.user_id))

    def sign_out(self) -> None:
        if self._client.fail:
            raise FakeSupabaseError("auth unreachable")
        self.user_id = None


class FakeSupabaseClient:
    """In-memory Supabase: tables are lists of snake_case rows."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail = False
        self.auth = _FakeAuth(self)

    def table(self, name: str) -> _FakeQuery:
        return _FakeQuery(self, name)


def make_form(
    vbv: float = 100_000,
    valores_pagos_cliente: float = 4_000,
    vrl: float = 70_000,
    vrlj: float = 5_000,
    periodo: str = "2024-05",
    tenant_id: str = "tenant-a",
) -> FormInput:
    return FormInput(
        vbv=vbv,
        valores_pagos_cliente=valores_pagos_cliente,
        vrl=vrl,
        vrlj=vrlj,
        periodo=periodo,
        tenant_id=tenant_id,
    )


def make_analysis(
    analysis_id: str,
    tenant_id: str = "tenant-a",
    user_id: str = "user-1",
    periodo: str = "2024-05",
    timestamp: str = "2024-06-01T10:00:00+00:00",
) -> AnalysisData:
    return AnalysisData.create(
        user_id=user_id,
        tenant_id=tenant_id,
        form_data=make_form(periodo=periodo, tenant_id=tenant_id),
        analysis_id=analysis_id,
        timestamp=timestamp,
    )


@pytest.fixture
def reference_form() -> FormInput:
    """The worked example: RBR 96k, ROL 75k."""
    return make_form()


@pytest.fixture
def user() -> User:
    return User(
        id="user-1",
        email="ana@restaurante.com.br",
        name="Ana",
        tenant_id="tenant-a",
        role="owner",
        created_at="2024-01-15T12:00:00+00:00",
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def local_backend(store) -> LocalBackend:
    return LocalBackend(store)


@pytest.fixture
def fake_client() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def remote_backend(fake_client) -> SupabaseBackend:
    return SupabaseBackend(client=fake_client)


@pytest.fixture
def remote_gateway(local_backend, remote_backend) -> PersistenceGateway:
    context = RuntimeContext(persistent_storage=True, remote_configured=True)
    return PersistenceGateway(context=context, local=local_backend, remote=remote_backend)


@pytest.fixture
def local_gateway(local_backend) -> PersistenceGateway:
    context = RuntimeContext(persistent_storage=True, remote_configured=False)
    return PersistenceGateway(context=context, local=local_backend)
