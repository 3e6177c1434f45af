from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from dashboard.models.domain import AnalysisData, User


class StorageError(Exception):
    """Base class for persistence failures."""


class RemoteUnavailableError(StorageError):
    """The remote backend was used without being configured."""


class LocalStorageError(StorageError):
    """The local key-value store could not be written."""


class StorageBackend(ABC):
    """Abstract base for the remote and local persistence backends.

    Both backends expose the same capability so the gateway can try one
    and fall back to the other without per-operation special cases.
    """

    name: str = "storage"

    @abstractmethod
    async def fetch_user(self) -> Optional[User]:
        """Return the user of the active session, or None."""
        ...

    @abstractmethod
    async def save_user(self, user: User) -> None:
        """Insert or replace the whole user record, keyed on id."""
        ...

    @abstractmethod
    async def clear_user(self) -> None:
        """End the session / forget the cached user."""
        ...

    @abstractmethod
    async def insert_analysis(self, analysis: AnalysisData) -> None:
        """Append a new analysis. Never overwrites."""
        ...

    @abstractmethod
    async def upsert_analyses(self, analyses: list[AnalysisData]) -> None:
        """Insert or replace a batch of analyses, keyed on id."""
        ...

    @abstractmethod
    async def list_analyses(
        self, tenant_id: str, user_id: Optional[str] = None
    ) -> list[AnalysisData]:
        """Analyses of a tenant (optionally one user), newest first."""
        ...

    @abstractmethod
    async def delete_analysis(self, analysis_id: str, tenant_id: str) -> None:
        """Remove one analysis of a tenant. Missing ids are not an error."""
        ...
