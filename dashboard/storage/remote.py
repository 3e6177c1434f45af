"""Supabase backend -- the ``Usuario`` profile table and ``historicodeanalise``.

The supabase client is synchronous; every call is pushed to a worker
thread so a slow request only suspends the calling coroutine.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from supabase import Client, create_client

from dashboard.config.settings import Settings
from dashboard.models.domain import AnalysisData, User
from dashboard.models.mapping import (
    analyses_from_rows,
    analysis_to_row,
    user_from_row,
    user_to_row,
)

from .base import RemoteUnavailableError, StorageBackend, StorageError

logger = logging.getLogger(__name__)


class SupabaseBackend(StorageBackend):
    """Reads and writes the Supabase tables through the official client."""

    name = "supabase"

    def __init__(self, settings: Optional[Settings] = None, client: Optional[Client] = None):
        self._settings = settings or Settings()
        self.users_table = self._settings.users_table
        self.analyses_table = self._settings.analyses_table
        if client is None and self._settings.remote_configured:
            client = create_client(self._settings.supabase_url, self._settings.supabase_key)
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            raise RemoteUnavailableError("Supabase URL/key not configured")
        return self._client

    async def _execute(self, query: Any) -> Any:
        return await asyncio.to_thread(query.execute)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def fetch_user(self) -> Optional[User]:
        response = await asyncio.to_thread(self.client.auth.get_user)
        auth_user = getattr(response, "user", None) if response else None
        if auth_user is None:
            return None

        result = await self._execute(
            self.client.table(self.users_table)
            .select("*")
            .eq("id", auth_user.id)
            .single()
        )
        if not result.data:
            return None
        return user_from_row(result.data)

    async def save_user(self, user: User) -> None:
        await self._execute(
            self.client.table(self.users_table).upsert(user_to_row(user), on_conflict="id")
        )
        logger.info(f"User {user.id} saved to table {self.users_table}")

    async def clear_user(self) -> None:
        await asyncio.to_thread(self.client.auth.sign_out)

    # ------------------------------------------------------------------
    # Analyses
    # ------------------------------------------------------------------

    async def insert_analysis(self, analysis: AnalysisData) -> None:
        await self._execute(
            self.client.table(self.analyses_table).insert(analysis_to_row(analysis))
        )
        logger.info(f"Analysis {analysis.id} saved to table {self.analyses_table}")

    async def upsert_analyses(self, analyses: list[AnalysisData]) -> None:
        rows = [analysis_to_row(a) for a in analyses]
        await self._execute(
            self.client.table(self.analyses_table).upsert(rows, on_conflict="id")
        )

    async def list_analyses(
        self, tenant_id: str, user_id: Optional[str] = None
    ) -> list[AnalysisData]:
        query = self.client.table(self.analyses_table).select("*")
        if user_id is not None:
            query = query.eq("user_id", user_id)
        query = query.eq("tenant_id", tenant_id).order("timestamp", desc=True)

        result = await self._execute(query)
        if result.data is None:
            raise StorageError(f"No data returned from {self.analyses_table}")
        return analyses_from_rows(result.data)

    async def delete_analysis(self, analysis_id: str, tenant_id: str) -> None:
        await self._execute(
            self.client.table(self.analyses_table)
            .delete()
            .eq("id", analysis_id)
            .eq("tenant_id", tenant_id)
        )
        logger.info(f"Analysis {analysis_id} deleted from table {self.analyses_table}")
