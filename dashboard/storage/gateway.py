"""Persistence gateway -- Supabase first, local storage as fallback.

Every operation runs through ``_two_tier``: try the remote backend, and
on any failure (or when remote is not configured) serve the call from
the local backend instead. User writes that reach Supabase are mirrored
locally so the session survives going offline. Nothing here raises to
the caller; the worst case is ``None``, ``[]`` or a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from dashboard.config.settings import Settings
from dashboard.models.domain import AnalysisData, User

from .base import StorageBackend
from .local import JsonFileStore, LocalBackend
from .remote import SupabaseBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RuntimeContext:
    """What the running environment offers, decided once at startup."""

    persistent_storage: bool = True
    remote_configured: bool = False

    @property
    def remote_available(self) -> bool:
        return self.persistent_storage and self.remote_configured

    @classmethod
    def from_settings(cls, settings: Settings) -> RuntimeContext:
        return cls(
            persistent_storage=settings.persistent_storage,
            remote_configured=settings.remote_configured,
        )


class PersistenceGateway:
    """Entry point for user and analysis persistence."""

    def __init__(
        self,
        context: RuntimeContext,
        local: LocalBackend,
        remote: Optional[StorageBackend] = None,
    ) -> None:
        self.context = context
        self.local = local
        self.remote = remote

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> PersistenceGateway:
        settings = settings or Settings()
        context = RuntimeContext.from_settings(settings)
        local = LocalBackend(
            JsonFileStore(settings.local_storage_path),
            user_key=settings.user_storage_key,
            analyses_prefix=settings.analyses_key_prefix,
        )
        remote = SupabaseBackend(settings=settings) if context.remote_available else None
        return cls(context=context, local=local, remote=remote)

    @property
    def remote_available(self) -> bool:
        return self.context.remote_available and self.remote is not None

    async def _two_tier(
        self,
        action: str,
        operation: Callable[[StorageBackend], Awaitable[T]],
        default: T,
        fallback: Optional[Callable[[], Awaitable[T]]] = None,
        accept: Optional[Callable[[T], bool]] = None,
        mirror: bool = False,
    ) -> T:
        """Run ``operation`` on Supabase, falling back to local storage.

        ``accept`` rejects a successful but unusable remote result (e.g. no
        session) so the local path is tried. With ``mirror`` the operation
        is replayed locally after a remote success, never after fallback.
        """
        if not self.context.persistent_storage:
            return default

        if self.remote_available:
            try:
                result = await operation(self.remote)
            except Exception as e:
                logger.warning(f"Supabase {action} failed, using local storage: {e}")
            else:
                if accept is None or accept(result):
                    if mirror:
                        await self._mirror(action, operation)
                    return result

        try:
            if fallback is not None:
                return await fallback()
            return await operation(self.local)
        except Exception as e:
            logger.error(f"Local {action} failed: {e}")
            return default

    async def _mirror(
        self, action: str, operation: Callable[[StorageBackend], Awaitable[T]]
    ) -> None:
        try:
            await operation(self.local)
        except Exception as e:
            logger.error(f"Could not mirror {action} to local storage: {e}")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_current_user(self) -> Optional[User]:
        return await self._two_tier(
            "get_current_user",
            lambda backend: backend.fetch_user(),
            default=None,
            accept=lambda user: user is not None,
        )

    async def save_user(self, user: User) -> None:
        await self._two_tier(
            "save_user",
            lambda backend: backend.save_user(user),
            default=None,
            mirror=True,
        )

    async def logout(self) -> None:
        if not self.context.persistent_storage:
            return

        if self.remote_available:
            try:
                await self.remote.clear_user()
                logger.info("Supabase session signed out")
            except Exception as e:
                logger.warning(f"Supabase sign-out failed: {e}")

        try:
            await self.local.clear_user()
        except Exception as e:
            logger.error(f"Could not clear cached user: {e}")

    # ------------------------------------------------------------------
    # Analyses
    # ------------------------------------------------------------------

    async def save_analysis(self, analysis: AnalysisData) -> None:
        await self._two_tier(
            "save_analysis",
            lambda backend: backend.insert_analysis(analysis),
            default=None,
        )

    async def load_analyses(self, tenant_id: str) -> list[AnalysisData]:
        analyses = await self._two_tier(
            "load_analyses",
            lambda backend: backend.list_analyses(tenant_id),
            default=[],
        )
        logger.info(f"{len(analyses)} analyses loaded for tenant {tenant_id}")
        return analyses

    async def delete_analysis(self, analysis_id: str, tenant_id: str) -> None:
        await self._two_tier(
            "delete_analysis",
            lambda backend: backend.delete_analysis(analysis_id, tenant_id),
            default=None,
        )

    async def get_analysis_by_period(self, tenant_id: str, contains: str) -> list[AnalysisData]:
        analyses = await self.load_analyses(tenant_id)
        return [a for a in analyses if contains in (a.form_data.periodo or "")]

    async def get_analyses_by_user(self, user_id: str, tenant_id: str) -> list[AnalysisData]:
        async def scan_tenant() -> list[AnalysisData]:
            analyses = await self.load_analyses(tenant_id)
            return [a for a in analyses if a.user_id == user_id]

        return await self._two_tier(
            "get_analyses_by_user",
            lambda backend: backend.list_analyses(tenant_id, user_id=user_id),
            default=[],
            fallback=scan_tenant,
        )
