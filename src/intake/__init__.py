"""Intake module: turns raw submissions into complaint records."""

from src.intake.identifiers import generate_complaint_id, to_base36
from src.intake.ratelimit import InMemoryRateLimiter, RateLimiter
from src.intake.validator import (
    COMPLAINT_FIELDS,
    REPORTER_FIELDS,
    Accepted,
    FieldRule,
    IntakeResult,
    IntakeValidator,
    Rejected,
    is_valid_email,
    parse_payload,
    sanitize_reporter,
    sanitize_string,
)

__all__ = [
    "COMPLAINT_FIELDS",
    "REPORTER_FIELDS",
    "Accepted",
    "FieldRule",
    "InMemoryRateLimiter",
    "IntakeResult",
    "IntakeValidator",
    "RateLimiter",
    "Rejected",
    "generate_complaint_id",
    "is_valid_email",
    "parse_payload",
    "sanitize_reporter",
    "sanitize_string",
    "to_base36",
]
