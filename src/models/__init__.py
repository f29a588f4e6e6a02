"""Data models for the complaint desk."""

from src.models.complaint import (
    ALLOWED_TRANSITIONS,
    ComplaintRecord,
    Reporter,
    required_status_for,
)
from src.models.enums import (
    ComplaintStatus,
    RejectionReason,
    ReviewAction,
    StorageBackend,
)

__all__ = [
    # Enums
    "ComplaintStatus",
    "RejectionReason",
    "ReviewAction",
    "StorageBackend",
    # Complaint models
    "ALLOWED_TRANSITIONS",
    "ComplaintRecord",
    "Reporter",
    "required_status_for",
]
