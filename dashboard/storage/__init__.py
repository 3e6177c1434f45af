from .base import LocalStorageError, RemoteUnavailableError, StorageBackend, StorageError
from .gateway import PersistenceGateway, RuntimeContext
from .local import JsonFileStore, KeyValueStore, LocalBackend, MemoryStore
from .remote import SupabaseBackend
from .sync import SyncReport, sync_local_to_remote

__all__ = [
    "JsonFileStore",
    "KeyValueStore",
    "LocalBackend",
    "LocalStorageError",
    "MemoryStore",
    "PersistenceGateway",
    "RemoteUnavailableError",
    "RuntimeContext",
    "StorageBackend",
    "StorageError",
    "SupabaseBackend",
    "SyncReport",
    "sync_local_to_remote",
]
