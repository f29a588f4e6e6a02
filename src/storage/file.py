"""File-based complaint store."""

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from src.storage.base import (
    Document,
    DuplicateComplaintError,
    StorageError,
    matches,
    sort_documents,
)

logger = logging.getLogger(__name__)

DEFAULT_COMPLAINTS_DIR = Path("data/complaints")


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class FileComplaintStore:
    """Complaint store that keeps one JSON file per complaint.

    Files are named by complaintId for direct lookup; other filters scan
    the directory. Datetimes are written as ISO 8601 strings.

    Thread-safety: a per-instance lock serializes writes. Separate
    processes writing the same directory are not coordinated.
    """

    def __init__(self, base_path: Path | None = None) -> None:
        """Initialize file storage.

        Args:
            base_path: Directory for complaint files.
                Defaults to data/complaints.
        """
        self.base_path = base_path or DEFAULT_COMPLAINTS_DIR
        self._lock = threading.Lock()
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create {self.base_path}: {e}") from e

    def _get_path(self, complaint_id: str) -> Path:
        """Get the file path for a complaint."""
        # complaintId is generated, but never let it escape the directory
        safe_name = Path(complaint_id).name
        return self.base_path / f"{safe_name}.json"

    def _read(self, path: Path) -> Document | None:
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("Skipping malformed complaint file %s: %s", path, e)
            return None
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e
        return data if isinstance(data, dict) else None

    def _write(self, path: Path, document: Document) -> None:
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, default=_json_default)
            tmp_path.replace(path)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    def _iter_documents(self) -> list[tuple[Path, Document]]:
        found: list[tuple[Path, Document]] = []
        for path in sorted(self.base_path.glob("*.json")):
            document = self._read(path)
            if document is not None:
                found.append((path, document))
        return found

    def _locate(self, filter: Document) -> tuple[Path, Document] | None:
        complaint_id = filter.get("complaintId")
        if isinstance(complaint_id, str):
            path = self._get_path(complaint_id)
            document = self._read(path)
            if document is not None and matches(document, filter):
                return path, document
            return None
        for path, document in self._iter_documents():
            if matches(document, filter):
                return path, document
        return None

    def insert(self, document: Document) -> None:
        complaint_id = document["complaintId"]
        path = self._get_path(complaint_id)
        with self._lock:
            if path.exists():
                raise DuplicateComplaintError(complaint_id)
            self._write(path, document)
        logger.info("Saved complaint %s to %s", complaint_id, path)

    def find_one(self, filter: Document) -> Document | None:
        located = self._locate(filter)
        return located[1] if located else None

    def find(
        self,
        filter: Document | None = None,
        sort_field: str = "createdAt",
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Document]:
        documents = [d for _, d in self._iter_documents() if matches(d, filter)]
        return sort_documents(documents, sort_field, descending, limit)

    def update_one(self, filter: Document, changes: Document) -> int:
        with self._lock:
            located = self._locate(filter)
            if located is None:
                return 0
            path, document = located
            document.update(changes)
            self._write(path, document)
        logger.info("Updated complaint file %s", path)
        return 1

    def delete_one(self, filter: Document) -> int:
        with self._lock:
            located = self._locate(filter)
            if located is None:
                return 0
            path, _ = located
            try:
                path.unlink()
            except FileNotFoundError:
                return 0
            except OSError as e:
                raise StorageError(f"Failed to delete {path}: {e}") from e
        logger.info("Deleted complaint file %s", path)
        return 1

    def close(self) -> None:
        """Files are opened per operation; nothing to release."""
