"""Document storage for complaint records."""

from src.storage.base import (
    ComplaintStore,
    Document,
    DuplicateComplaintError,
    StorageError,
    StoreProvider,
)
from src.storage.file import FileComplaintStore
from src.storage.memory import InMemoryComplaintStore
from src.storage.providers import SettingsStoreProvider, SharedStoreProvider, open_store

__all__ = [
    "ComplaintStore",
    "Document",
    "DuplicateComplaintError",
    "FileComplaintStore",
    "InMemoryComplaintStore",
    "SettingsStoreProvider",
    "SharedStoreProvider",
    "StorageError",
    "StoreProvider",
    "open_store",
]
