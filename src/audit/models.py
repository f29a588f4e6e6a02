"""Audit event models for the complaint lifecycle.

All models are immutable once created (Pydantic frozen=True) and carry
UTC timestamps. Events describe what happened to a complaint, never who
reported it: reporter details and caller addresses are not recorded.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


class AuditAction(str, Enum):
    """Types of actions that can be audited."""

    COMPLAINT_CREATED = "complaint_created"
    STATUS_CHANGED = "status_changed"
    COMPLAINT_DELETED = "complaint_deleted"


class AuditEvent(BaseModel):
    """Audit event as written to and read back from the log.

    Attributes:
        event_id: Unique identifier for this event.
        timestamp: UTC timestamp when event occurred.
        action: Type of action being logged.
        resource_type: Type of resource affected.
        resource_id: ID of the resource affected.
        user_id: ID of user who performed the action (or "system").
        user_name: Display name of user.
        details: Action-specific details.
        metadata: Optional metadata for extensibility.
    """

    model_config = {"frozen": True}

    event_id: str = Field(..., description="Unique event identifier")
    timestamp: datetime = Field(
        default_factory=_utc_now,
        description="UTC timestamp of the event",
    )
    action: AuditAction = Field(..., description="Type of action performed")
    resource_type: str = Field(..., description="Type of resource affected")
    resource_id: str = Field(..., description="ID of the affected resource")
    user_id: str = Field(default="system")
    user_name: str = Field(default="System")
    details: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ComplaintLifecycleEvent(BaseModel):
    """Typed event about one complaint; subclasses add their own fields.

    Subclass fields become the ``details`` of the stored ``AuditEvent``.
    """

    model_config = {"frozen": True}

    action: ClassVar[AuditAction]
    resource_type: ClassVar[str] = "complaint"

    event_id: str = Field(..., description="Unique event identifier")
    timestamp: datetime = Field(default_factory=_utc_now)
    resource_id: str = Field(..., description="Complaint ID")
    user_id: str = Field(default="system")
    user_name: str = Field(default="System")
    metadata: dict[str, Any] = Field(default_factory=dict)

    def details(self) -> dict[str, Any]:
        common = set(ComplaintLifecycleEvent.model_fields)
        return self.model_dump(exclude=common)

    def to_base_event(self) -> AuditEvent:
        """Convert to base AuditEvent for storage."""
        return AuditEvent(
            event_id=self.event_id,
            timestamp=self.timestamp,
            action=self.action,
            resource_type=self.resource_type,
            resource_id=self.resource_id,
            user_id=self.user_id,
            user_name=self.user_name,
            details=self.details(),
            metadata=self.metadata,
        )


class ComplaintCreatedEvent(ComplaintLifecycleEvent):
    """Logged when a submission is accepted and stored."""

    action: ClassVar[AuditAction] = AuditAction.COMPLAINT_CREATED

    department: str = Field(..., description="Department the complaint concerns")
    program: str = Field(..., description="Program the complaint concerns")
    initial_status: str = Field(default="pending")
    identified: bool = Field(
        default=False, description="Whether the reporter chose to identify"
    )


class StatusChangedEvent(ComplaintLifecycleEvent):
    """Logged when a reviewer approves or rejects a complaint."""

    action: ClassVar[AuditAction] = AuditAction.STATUS_CHANGED

    previous_status: str
    new_status: str


class ComplaintDeletedEvent(ComplaintLifecycleEvent):
    """Logged when a complaint is removed from the store."""

    action: ClassVar[AuditAction] = AuditAction.COMPLAINT_DELETED

    final_status: str | None = Field(
        default=None, description="Status at the time of deletion"
    )
