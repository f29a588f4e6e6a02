"""Enumerations for the complaint desk."""

from enum import Enum


class ComplaintStatus(str, Enum):
    """Review status of a complaint."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewAction(str, Enum):
    """Action a reviewer can take on a pending complaint."""

    APPROVE = "approve"
    REJECT = "reject"

    @property
    def resulting_status(self) -> ComplaintStatus:
        """Status a complaint moves to when this action is applied."""
        if self is ReviewAction.APPROVE:
            return ComplaintStatus.APPROVED
        return ComplaintStatus.REJECTED


class RejectionReason(str, Enum):
    """Machine-readable reason an intake submission was refused."""

    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    INVALID_PAYLOAD = "invalid_payload"
    MISSING_FIELDS = "missing_fields"
    TOO_SHORT = "too_short"
    INVALID_EMAIL = "invalid_email"


class StorageBackend(str, Enum):
    """Document store implementation to use."""

    MEMORY = "memory"
    FILE = "file"
    MONGO = "mongo"
