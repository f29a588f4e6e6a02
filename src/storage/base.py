"""Storage interface shared by all complaint store backends."""

from collections.abc import Iterator
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Protocol

Document = dict[str, Any]


class StorageError(Exception):
    """A store operation failed for reasons outside the caller's control."""


class DuplicateComplaintError(StorageError):
    """An insert collided with an existing complaintId."""

    def __init__(self, complaint_id: str) -> None:
        super().__init__(f"Complaint {complaint_id} already exists")
        self.complaint_id = complaint_id


class ComplaintStore(Protocol):
    """Document store holding complaint records.

    Filters are equality matches on top-level keys. Documents use the
    camelCase keys of ``ComplaintRecord.to_document``.
    """

    def insert(self, document: Document) -> None:
        """Insert a new complaint document.

        Raises:
            DuplicateComplaintError: If the complaintId is already stored.
            StorageError: If the write fails.
        """
        ...

    def find_one(self, filter: Document) -> Document | None:
        """Return the first document matching ``filter``, or None."""
        ...

    def find(
        self,
        filter: Document | None = None,
        sort_field: str = "createdAt",
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Document]:
        """Return matching documents ordered by ``sort_field``."""
        ...

    def update_one(self, filter: Document, changes: Document) -> int:
        """Set ``changes`` on the first matching document.

        Returns:
            Number of documents matched (0 or 1).
        """
        ...

    def delete_one(self, filter: Document) -> int:
        """Delete the first matching document.

        Returns:
            Number of documents deleted (0 or 1).
        """
        ...

    def close(self) -> None:
        """Release any connection held by the store."""
        ...


class StoreProvider(Protocol):
    """Hands out a store for the duration of one operation."""

    def session(self) -> AbstractContextManager[ComplaintStore]:
        ...


def matches(document: Document, filter: Document | None) -> bool:
    """Top-level equality match, comparing enum values by their value."""
    if not filter:
        return True
    for key, expected in filter.items():
        expected = getattr(expected, "value", expected)
        actual = document.get(key)
        actual = getattr(actual, "value", actual)
        if actual != expected:
            return False
    return True


def sort_key(value: Any) -> tuple[int, Any]:
    """Ordering key that sorts ISO strings and datetimes chronologically."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return (1, value)
    if isinstance(value, datetime):
        return (0, value.timestamp())
    if value is None:
        return (-1, 0)
    return (1, value)


def sort_documents(
    documents: Iterator[Document] | list[Document],
    sort_field: str,
    descending: bool,
    limit: int | None,
) -> list[Document]:
    ordered = sorted(
        documents, key=lambda d: sort_key(d.get(sort_field)), reverse=descending
    )
    return ordered[:limit] if limit is not None else ordered
