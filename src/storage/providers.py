"""Scoped store acquisition for request handlers."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from src.config import Settings
from src.models.enums import StorageBackend
from src.storage.base import ComplaintStore
from src.storage.file import FileComplaintStore
from src.storage.memory import InMemoryComplaintStore

logger = logging.getLogger(__name__)


class SharedStoreProvider:
    """Yields the same long-lived store to every session.

    The store is not closed when a session ends; use for in-memory stores
    and tests.
    """

    def __init__(self, store: ComplaintStore) -> None:
        self.store = store

    @contextmanager
    def session(self) -> Iterator[ComplaintStore]:
        yield self.store


class SettingsStoreProvider:
    """Builds a store from settings for each session and always closes it.

    The memory backend is the exception: one store is kept for the life of
    the provider, otherwise nothing would persist between requests.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._memory: InMemoryComplaintStore | None = None
        if settings.storage_backend == StorageBackend.MEMORY:
            self._memory = InMemoryComplaintStore()

    def _open(self) -> ComplaintStore:
        backend = self.settings.storage_backend
        if backend == StorageBackend.MEMORY:
            assert self._memory is not None
            return self._memory
        if backend == StorageBackend.FILE:
            return FileComplaintStore(self.settings.data_dir)
        # Imported lazily so the memory and file backends work without pymongo
        from src.storage.mongo import MongoComplaintStore

        return MongoComplaintStore.connect(
            self.settings.mongodb_uri,
            self.settings.mongodb_db,
            self.settings.mongodb_collection,
        )

    @contextmanager
    def session(self) -> Iterator[ComplaintStore]:
        store = self._open()
        try:
            yield store
        finally:
            try:
                store.close()
            except Exception:
                logger.warning(
                    "Failed to close %s", type(store).__name__, exc_info=True
                )


@contextmanager
def open_store(settings: Settings) -> Iterator[ComplaintStore]:
    """Open a store for ``settings`` and close it on exit."""
    with SettingsStoreProvider(settings).session() as store:
        yield store
