"""In-process complaint store."""

import copy
import logging
import threading

from src.storage.base import (
    Document,
    DuplicateComplaintError,
    matches,
    sort_documents,
)

logger = logging.getLogger(__name__)


class InMemoryComplaintStore:
    """Complaint store backed by a dict, keyed by complaintId.

    Documents are deep-copied on the way in and out so callers never share
    mutable state with the store. Suitable for tests and single-process
    local runs; contents are lost when the process exits.
    """

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._lock = threading.Lock()

    def insert(self, document: Document) -> None:
        complaint_id = document["complaintId"]
        with self._lock:
            if complaint_id in self._documents:
                raise DuplicateComplaintError(complaint_id)
            self._documents[complaint_id] = copy.deepcopy(document)
        logger.debug("Stored complaint %s in memory", complaint_id)

    def find_one(self, filter: Document) -> Document | None:
        with self._lock:
            for document in self._documents.values():
                if matches(document, filter):
                    return copy.deepcopy(document)
        return None

    def find(
        self,
        filter: Document | None = None,
        sort_field: str = "createdAt",
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Document]:
        with self._lock:
            found = [
                copy.deepcopy(d) for d in self._documents.values() if matches(d, filter)
            ]
        return sort_documents(found, sort_field, descending, limit)

    def update_one(self, filter: Document, changes: Document) -> int:
        with self._lock:
            for document in self._documents.values():
                if matches(document, filter):
                    document.update(copy.deepcopy(changes))
                    return 1
        return 0

    def delete_one(self, filter: Document) -> int:
        with self._lock:
            for complaint_id, document in self._documents.items():
                if matches(document, filter):
                    del self._documents[complaint_id]
                    return 1
        return 0

    def close(self) -> None:
        """Nothing to release; contents survive across sessions."""

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)
