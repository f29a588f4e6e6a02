"""Core complaint data models."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import ComplaintStatus

# Statuses each status may move to; terminal statuses have no entry.
ALLOWED_TRANSITIONS: dict[ComplaintStatus, frozenset[ComplaintStatus]] = {
    ComplaintStatus.PENDING: frozenset(
        {ComplaintStatus.APPROVED, ComplaintStatus.REJECTED}
    ),
}


def required_status_for(target: ComplaintStatus) -> ComplaintStatus | None:
    """The status a record must hold to move to ``target``, if any."""
    for source, targets in ALLOWED_TRANSITIONS.items():
        if target in targets:
            return source
    return None


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


class Reporter(BaseModel):
    """Optional identity a complainant chose to share.

    Only these three fields are ever stored; anything else submitted
    under ``reporter`` is dropped during intake.
    """

    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(default=None, max_length=100, description="Display name")
    email: str | None = Field(
        default=None, max_length=254, description="Contact email address"
    )
    username: str | None = Field(
        default=None, max_length=100, description="Front-end username"
    )

    def is_empty(self) -> bool:
        """True when no sub-field carries a value."""
        return not (self.name or self.email or self.username)


class ComplaintRecord(BaseModel):
    """A complaint as stored in the document store.

    Attribute names are snake_case; the stored and wire representation
    uses the camelCase aliases expected by the front-end.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    complaint_id: str = Field(
        ..., alias="complaintId", description="Unique complaint identifier"
    )
    department: str = Field(..., min_length=1, max_length=100)
    program: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=5, max_length=200)
    details: str = Field(..., min_length=10, max_length=4000)
    status: ComplaintStatus = Field(
        default=ComplaintStatus.PENDING, description="Review status"
    )
    reporter: Reporter | None = Field(
        default=None, description="Reporter details, only if supplied"
    )

    # Audit fields
    created_at: datetime = Field(
        default_factory=_utc_now, alias="createdAt", description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=_utc_now, alias="updatedAt", description="Last update timestamp"
    )

    def to_document(self) -> dict[str, Any]:
        """Serialize for the document store (datetimes kept native)."""
        document = self.model_dump(by_alias=True, exclude_none=True)
        document["status"] = self.status.value
        return document

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize for an HTTP response body."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
