"""MongoDB complaint store."""

import logging
from typing import Any

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from src.storage.base import Document, DuplicateComplaintError, StorageError

logger = logging.getLogger(__name__)

DEFAULT_SERVER_SELECTION_TIMEOUT_MS = 5000

# Mongo's internal key never leaves the store
_PROJECTION = {"_id": 0}


def _plain(filter: Document | None) -> Document:
    """Unwrap enum values so the driver can encode them."""
    return {k: getattr(v, "value", v) for k, v in (filter or {}).items()}


class MongoComplaintStore:
    """Complaint store backed by a MongoDB collection.

    A unique index on ``complaintId`` enforces identifier uniqueness at the
    database. Driver errors are re-raised as ``StorageError`` so handlers
    never depend on pymongo exception types.

    Attributes:
        collection: The pymongo collection holding complaint documents.
    """

    def __init__(
        self,
        collection: Collection,
        client: MongoClient | None = None,
        ensure_index: bool = True,
    ) -> None:
        """Wrap an existing collection.

        Args:
            collection: Collection to operate on.
            client: Client to close on ``close()``; None if the caller owns it.
            ensure_index: Create the unique complaintId index if missing.
        """
        self.collection = collection
        self._client = client
        if ensure_index:
            try:
                self.collection.create_index(
                    [("complaintId", ASCENDING)],
                    unique=True,
                    name="complaintId_unique",
                )
            except PyMongoError as e:
                self.close()
                raise StorageError(
                    f"Failed to prepare complaints collection: {e}"
                ) from e

    @classmethod
    def connect(
        cls,
        uri: str,
        database: str,
        collection: str,
        **client_options: Any,
    ) -> "MongoComplaintStore":
        """Open a client and return a store that owns it.

        Raises:
            StorageError: If the client cannot be created or the index
                cannot be ensured.
        """
        options: dict[str, Any] = {
            "tz_aware": True,
            "serverSelectionTimeoutMS": DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
        }
        options.update(client_options)
        try:
            client: MongoClient = MongoClient(uri, **options)
        except PyMongoError as e:
            raise StorageError(f"Failed to create MongoDB client: {e}") from e
        logger.debug("Connected to MongoDB database %s", database)
        return cls(client[database][collection], client=client)

    def insert(self, document: Document) -> None:
        # insert_one adds _id to the dict it is given
        to_insert = dict(document)
        try:
            self.collection.insert_one(to_insert)
        except DuplicateKeyError as e:
            raise DuplicateComplaintError(document["complaintId"]) from e
        except PyMongoError as e:
            raise StorageError(f"Insert failed: {e}") from e

    def find_one(self, filter: Document) -> Document | None:
        try:
            return self.collection.find_one(_plain(filter), _PROJECTION)
        except PyMongoError as e:
            raise StorageError(f"Lookup failed: {e}") from e

    def find(
        self,
        filter: Document | None = None,
        sort_field: str = "createdAt",
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Document]:
        try:
            cursor = self.collection.find(_plain(filter), _PROJECTION).sort(
                sort_field, DESCENDING if descending else ASCENDING
            )
            if limit is not None:
                cursor = cursor.limit(limit)
            return list(cursor)
        except PyMongoError as e:
            raise StorageError(f"Query failed: {e}") from e

    def update_one(self, filter: Document, changes: Document) -> int:
        try:
            result = self.collection.update_one(
                _plain(filter), {"$set": _plain(changes)}
            )
        except PyMongoError as e:
            raise StorageError(f"Update failed: {e}") from e
        return result.matched_count

    def delete_one(self, filter: Document) -> int:
        try:
            result = self.collection.delete_one(_plain(filter))
        except PyMongoError as e:
            raise StorageError(f"Delete failed: {e}") from e
        return result.deleted_count

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
