"""Audit logger implementation with JSON file storage.

Events are appended in JSON Lines format, one file per UTC day:
    audit_logs/
        2026-10-18.jsonl
        2026-10-19.jsonl
        ...
"""

import json
import logging
import os
import uuid
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from pathlib import Path

from src.audit.models import AuditAction, AuditEvent, ComplaintLifecycleEvent

logger = logging.getLogger(__name__)

# Type alias for all event types
EventType = AuditEvent | ComplaintLifecycleEvent

_EPOCH = datetime(2020, 1, 1, tzinfo=UTC)


def generate_event_id() -> str:
    """Generate a unique event ID.

    Format: EVT-{timestamp}-{uuid4_short}
    Example: EVT-20261019143052-a1b2c3d4
    """
    timestamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
    short_uuid = uuid.uuid4().hex[:8]
    return f"EVT-{timestamp}-{short_uuid}"


class AuditLogger:
    """Append-only audit logger with JSON file storage.

    Thread-safety: each event is a single append-mode write, which is
    atomic for lines of this size on local file systems.

    Attributes:
        log_dir: Directory where audit logs are stored.
    """

    def __init__(self, log_dir: Path | str | None = None) -> None:
        """Initialize the audit logger.

        Args:
            log_dir: Directory for audit logs. If None, uses './audit_logs'.
        """
        if log_dir is None:
            log_dir = Path("audit_logs")
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def _get_log_file(self, timestamp: datetime | None = None) -> Path:
        """Get the log file path for the day of ``timestamp``."""
        if timestamp is None:
            timestamp = datetime.now(UTC)
        date_str = timestamp.astimezone(UTC).strftime("%Y-%m-%d")
        return self.log_dir / f"{date_str}.jsonl"

    def _serialize_event(self, event: EventType) -> str:
        base_event = (
            event if isinstance(event, AuditEvent) else event.to_base_event()
        )
        data = base_event.model_dump(mode="json")
        return json.dumps(data, default=str, ensure_ascii=False)

    def log_event(self, event: EventType) -> str:
        """Log an audit event.

        Appends the event to the log file for its day. Events cannot be
        modified or deleted once logged.

        Returns:
            The event ID of the logged event.

        Raises:
            OSError: If unable to write to log file.
        """
        json_line = self._serialize_event(event)
        log_file = self._get_log_file(event.timestamp)

        try:
            with open(log_file, "a", encoding="utf-8") as f:
                f.write(json_line + "\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            logger.error("Failed to write audit event %s: %s", event.event_id, e)
            raise

        logger.debug("Logged audit event %s to %s", event.event_id, log_file)
        return event.event_id

    def _iter_events(
        self,
        start_date: datetime | None,
        end_date: datetime | None,
        predicate: Callable[[dict], bool],
    ) -> Iterator[AuditEvent]:
        start = (start_date or _EPOCH).date()
        end = (end_date or datetime.now(UTC)).date()

        for log_file in sorted(self.log_dir.glob("*.jsonl")):
            try:
                file_date = datetime.strptime(log_file.stem, "%Y-%m-%d").date()
            except ValueError:
                continue
            if file_date < start or file_date > end:
                continue

            try:
                with open(log_file, encoding="utf-8") as f:
                    for line in f:
                        line = line.strip()
                        if not line:
                            continue
                        try:
                            data = json.loads(line)
                            if predicate(data):
                                yield AuditEvent.model_validate(data)
                        except (json.JSONDecodeError, ValueError) as e:
                            logger.warning(
                                "Skipping malformed event in %s: %s", log_file, e
                            )
            except OSError as e:
                logger.error("Failed to read audit log %s: %s", log_file, e)

    def get_events(
        self,
        resource_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[AuditEvent]:
        """Retrieve events for one complaint, sorted by timestamp."""
        events = list(
            self._iter_events(
                start_date, end_date, lambda d: d.get("resource_id") == resource_id
            )
        )
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_events_by_action(
        self,
        action: AuditAction,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[AuditEvent]:
        """Retrieve events of one action type, sorted by timestamp."""
        events = list(
            self._iter_events(
                start_date, end_date, lambda d: d.get("action") == action.value
            )
        )
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_all_events(
        self,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[AuditEvent]:
        """Retrieve all events within a date range, sorted by timestamp."""
        events = list(self._iter_events(start_date, end_date, lambda d: True))
        events.sort(key=lambda e: e.timestamp)
        return events
