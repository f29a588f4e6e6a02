"""Append-only audit trail of complaint lifecycle events.

Events are stored with UTC timestamps and are immutable once created.
"""

from src.audit.logger import AuditLogger, generate_event_id
from src.audit.models import (
    AuditAction,
    AuditEvent,
    ComplaintCreatedEvent,
    ComplaintDeletedEvent,
    ComplaintLifecycleEvent,
    StatusChangedEvent,
)

__all__ = [
    "AuditAction",
    "AuditEvent",
    "AuditLogger",
    "ComplaintCreatedEvent",
    "ComplaintDeletedEvent",
    "ComplaintLifecycleEvent",
    "StatusChangedEvent",
    "generate_event_id",
]
