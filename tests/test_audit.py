"""Tests for audit logging module."""

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest
from pydantic import ValidationError

from src.audit.logger import AuditLogger, generate_event_id
from src.audit.models import (
    AuditAction,
    AuditEvent,
    ComplaintCreatedEvent,
    ComplaintDeletedEvent,
    StatusChangedEvent,
)


def _event(
    event_id: str,
    resource_id: str = "COMP-001",
    action: AuditAction = AuditAction.COMPLAINT_CREATED,
    timestamp: datetime | None = None,
) -> AuditEvent:
    extra = {"timestamp": timestamp} if timestamp else {}
    return AuditEvent(
        event_id=event_id,
        action=action,
        resource_type="complaint",
        resource_id=resource_id,
        **extra,
    )


class TestGenerateEventId:
    """Tests for event ID generation."""

    def test_generates_unique_ids(self) -> None:
        """Each call generates a unique ID."""
        ids = [generate_event_id() for _ in range(100)]
        assert len(set(ids)) == 100

    def test_id_format(self) -> None:
        """ID follows expected format."""
        event_id = generate_event_id()
        assert event_id.startswith("EVT-")
        parts = event_id.split("-")
        assert len(parts) == 3
        assert len(parts[1]) == 14  # YYYYMMDDHHMMSS
        assert len(parts[2]) == 8


class TestAuditEventModels:
    """Tests for audit event models."""

    def test_audit_event_immutable(self) -> None:
        """AuditEvent is immutable once created."""
        event = _event("EVT-001")

        with pytest.raises(ValidationError):
            event.action = AuditAction.STATUS_CHANGED  # type: ignore

    def test_audit_event_defaults(self) -> None:
        """AuditEvent gets a UTC timestamp and the system user by default."""
        event = _event("EVT-001")

        assert event.timestamp.tzinfo is not None
        assert event.user_id == "system"
        assert event.user_name == "System"

    def test_complaint_created_to_base_event(self) -> None:
        event = ComplaintCreatedEvent(
            event_id="EVT-001",
            resource_id="COMP-001",
            department="Civil",
            program="M.Tech",
            identified=True,
        )

        base = event.to_base_event()

        assert base.action == AuditAction.COMPLAINT_CREATED
        assert base.resource_type == "complaint"
        assert base.details == {
            "department": "Civil",
            "program": "M.Tech",
            "initial_status": "pending",
            "identified": True,
        }

    def test_status_changed_to_base_event(self) -> None:
        event = StatusChangedEvent(
            event_id="EVT-002",
            resource_id="COMP-001",
            previous_status="pending",
            new_status="approved",
        )

        base = event.to_base_event()

        assert base.action == AuditAction.STATUS_CHANGED
        assert base.details["new_status"] == "approved"

    def test_complaint_deleted_to_base_event(self) -> None:
        event = ComplaintDeletedEvent(event_id="EVT-003", resource_id="COMP-001")

        base = event.to_base_event()

        assert base.action == AuditAction.COMPLAINT_DELETED
        assert base.details == {"final_status": None}


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_creates_log_directory(self, tmp_path: Path) -> None:
        """Logger creates log directory if it doesn't exist."""
        log_dir = tmp_path / "audit_logs"
        assert not log_dir.exists()

        AuditLogger(log_dir=log_dir)

        assert log_dir.exists()

    def test_log_multiple_events_appends(self, tmp_path: Path) -> None:
        """Events on one day share a file, one JSON line each."""
        audit_logger = AuditLogger(log_dir=tmp_path)
        day = datetime(2026, 3, 2, 9, 0, 0, tzinfo=UTC)

        for i in range(5):
            returned = audit_logger.log_event(
                _event(f"EVT-{i:03d}", resource_id=f"COMP-{i:03d}", timestamp=day)
            )
            assert returned == f"EVT-{i:03d}"

        log_file = tmp_path / "2026-03-02.jsonl"
        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 5
        assert json.loads(lines[0])["event_id"] == "EVT-000"

    def test_events_partitioned_by_day(self, tmp_path: Path) -> None:
        audit_logger = AuditLogger(log_dir=tmp_path)
        audit_logger.log_event(
            _event("EVT-1", timestamp=datetime(2026, 3, 1, 23, 59, tzinfo=UTC))
        )
        audit_logger.log_event(
            _event("EVT-2", timestamp=datetime(2026, 3, 2, 0, 1, tzinfo=UTC))
        )

        names = sorted(p.name for p in tmp_path.glob("*.jsonl"))
        assert names == ["2026-03-01.jsonl", "2026-03-02.jsonl"]

    def test_typed_event_written_as_base(self, tmp_path: Path) -> None:
        audit_logger = AuditLogger(log_dir=tmp_path)
        audit_logger.log_event(
            StatusChangedEvent(
                event_id="EVT-001",
                resource_id="COMP-001",
                previous_status="pending",
                new_status="rejected",
            )
        )

        log_file = next(tmp_path.glob("*.jsonl"))
        data = json.loads(log_file.read_text(encoding="utf-8"))
        assert data["action"] == "status_changed"
        assert data["details"]["previous_status"] == "pending"

    def test_get_events_by_resource_id_sorted(self, tmp_path: Path) -> None:
        """Events for one complaint come back oldest first."""
        audit_logger = AuditLogger(log_dir=tmp_path)
        timestamps = [
            datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC),
            datetime(2026, 1, 14, 10, 0, 0, tzinfo=UTC),
            datetime(2026, 1, 15, 14, 0, 0, tzinfo=UTC),
        ]
        for i, ts in enumerate(timestamps):
            audit_logger.log_event(_event(f"EVT-{i}", timestamp=ts))
        audit_logger.log_event(_event("EVT-other", resource_id="COMP-002"))

        events = audit_logger.get_events("COMP-001")

        assert [e.event_id for e in events] == ["EVT-1", "EVT-0", "EVT-2"]

    def test_get_events_by_action(self, tmp_path: Path) -> None:
        audit_logger = AuditLogger(log_dir=tmp_path)
        actions = [
            AuditAction.COMPLAINT_CREATED,
            AuditAction.STATUS_CHANGED,
            AuditAction.STATUS_CHANGED,
            AuditAction.COMPLAINT_DELETED,
        ]
        for i, action in enumerate(actions):
            audit_logger.log_event(_event(f"EVT-{i}", action=action))

        events = audit_logger.get_events_by_action(AuditAction.STATUS_CHANGED)

        assert len(events) == 2
        assert all(e.action == AuditAction.STATUS_CHANGED for e in events)

    def test_date_range(self, tmp_path: Path) -> None:
        audit_logger = AuditLogger(log_dir=tmp_path)
        audit_logger.log_event(
            _event("EVT-old", timestamp=datetime(2025, 6, 1, tzinfo=UTC))
        )
        audit_logger.log_event(
            _event("EVT-new", timestamp=datetime(2026, 6, 1, tzinfo=UTC))
        )

        events = audit_logger.get_all_events(
            start_date=datetime(2026, 1, 1, tzinfo=UTC),
            end_date=datetime(2026, 12, 31, tzinfo=UTC),
        )

        assert [e.event_id for e in events] == ["EVT-new"]

    def test_malformed_lines_skipped(self, tmp_path: Path) -> None:
        audit_logger = AuditLogger(log_dir=tmp_path)
        day = datetime(2026, 2, 2, tzinfo=UTC)
        audit_logger.log_event(_event("EVT-1", timestamp=day))
        with open(tmp_path / "2026-02-02.jsonl", "a", encoding="utf-8") as f:
            f.write("{truncated\n\n")

        assert [e.event_id for e in audit_logger.get_all_events()] == ["EVT-1"]

    def test_write_failure_raises(self, tmp_path: Path) -> None:
        audit_logger = AuditLogger(log_dir=tmp_path)
        day = datetime(2026, 2, 2, tzinfo=UTC)
        (tmp_path / "2026-02-02.jsonl").mkdir()

        with pytest.raises(OSError):
            audit_logger.log_event(_event("EVT-1", timestamp=day))
