"""Submission intake: secret gate, rate limit, sanitization and validation."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field

from src.intake.identifiers import generate_complaint_id
from src.intake.ratelimit import RateLimiter
from src.models.complaint import ComplaintRecord, Reporter
from src.models.enums import ComplaintStatus, RejectionReason

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldRule:
    """Sanitization and validation rule for one payload field."""

    name: str
    max_length: int
    required: bool = False
    min_length: int = 0


# Complaint fields, checked in this order
COMPLAINT_FIELDS: tuple[FieldRule, ...] = (
    FieldRule("department", max_length=100, required=True),
    FieldRule("program", max_length=100, required=True),
    FieldRule("title", max_length=200, required=True, min_length=5),
    FieldRule("details", max_length=4000, required=True, min_length=10),
)

# Allow-listed reporter sub-fields; anything else is dropped
REPORTER_FIELDS: tuple[FieldRule, ...] = (
    FieldRule("name", max_length=100),
    FieldRule("email", max_length=254),
    FieldRule("username", max_length=100),
)

# Suggested HTTP status per rejection reason
REJECTION_STATUS_CODES: dict[RejectionReason, int] = {
    RejectionReason.UNAUTHORIZED: 401,
    RejectionReason.RATE_LIMITED: 429,
    RejectionReason.INVALID_PAYLOAD: 400,
    RejectionReason.MISSING_FIELDS: 400,
    RejectionReason.TOO_SHORT: 400,
    RejectionReason.INVALID_EMAIL: 400,
}


def sanitize_string(value: Any, max_length: int) -> str:
    """Normalize an untrusted field value.

    Non-strings become the empty string. NUL characters are removed,
    surrounding whitespace is trimmed and the result is truncated to
    ``max_length``. Truncation is silent. Applying the function to its own
    output returns the same string.
    """
    if not isinstance(value, str):
        return ""
    cleaned = value.replace("\0", "").strip()
    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length].rstrip()
    return cleaned


def is_valid_email(value: str) -> bool:
    """Syntax-only email check (no DNS or deliverability lookups)."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


class Accepted(BaseModel):
    """Intake outcome carrying a record ready for storage."""

    model_config = ConfigDict(frozen=True)

    record: ComplaintRecord


class Rejected(BaseModel):
    """Intake outcome describing why a submission was refused."""

    model_config = ConfigDict(frozen=True)

    reason: RejectionReason
    status_code: int
    message: str
    field: str | None = Field(default=None, description="Field that failed, if any")

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "reason": self.reason.value}
        if self.field:
            body["field"] = self.field
        return body


IntakeResult = Accepted | Rejected


def reject(
    reason: RejectionReason, message: str, field: str | None = None
) -> Rejected:
    """Build a rejection with the status code mapped from ``reason``."""
    return Rejected(
        reason=reason,
        status_code=REJECTION_STATUS_CODES[reason],
        message=message,
        field=field,
    )


def parse_payload(raw_payload: Any) -> dict[str, Any] | None:
    """Decode a raw request body into a JSON object.

    Accepts an already-decoded dict, a str or bytes JSON document, or None
    (treated as an empty object). Returns None for anything that is not a
    JSON object.
    """
    if raw_payload is None:
        return {}
    if isinstance(raw_payload, dict):
        return raw_payload
    if isinstance(raw_payload, bytes | bytearray):
        try:
            raw_payload = raw_payload.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if not isinstance(raw_payload, str):
        return None
    if not raw_payload.strip():
        return {}
    try:
        decoded = json.loads(raw_payload)
    except json.JSONDecodeError:
        return None
    return decoded if isinstance(decoded, dict) else None


def sanitize_reporter(raw_reporter: Any) -> tuple[Reporter | None, Rejected | None]:
    """Sanitize the optional reporter object.

    Returns:
        (reporter, None) on success, where reporter is None when nothing
        survived sanitization; (None, rejection) for an invalid email.
    """
    if not isinstance(raw_reporter, dict):
        return None, None

    values = {
        rule.name: sanitize_string(raw_reporter.get(rule.name), rule.max_length)
        for rule in REPORTER_FIELDS
    }
    if values["email"] and not is_valid_email(values["email"]):
        return None, reject(
            RejectionReason.INVALID_EMAIL, "Invalid reporter email", field="email"
        )

    reporter = Reporter(**{name: value for name, value in values.items() if value})
    return (None if reporter.is_empty() else reporter), None


class IntakeValidator:
    """Turns a raw submission into a storable complaint or a rejection.

    The validator performs no I/O. Its only state is the injected rate
    limiter; the only clock read is ``now`` (defaulting to the wall clock).
    Expected bad input always produces a ``Rejected``; it never raises for
    it.

    Attributes:
        rate_limiter: Limiter consulted once per call, before parsing.
        shared_secret: If non-empty, callers must present this exact value.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        shared_secret: str = "",
        id_factory: Callable[[int], str] = generate_complaint_id,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.shared_secret = shared_secret
        self._id_factory = id_factory

    def evaluate(
        self,
        raw_payload: Any,
        caller_key: str,
        provided_secret: str | None = None,
        now: datetime | None = None,
    ) -> IntakeResult:
        """Run every intake step in order and stop at the first failure.

        Args:
            raw_payload: Request body (JSON text, bytes, dict or None).
            caller_key: Rate-limit bucket, usually the client IP.
            provided_secret: Value of the secret header, if sent.
            now: Submission time; defaults to the current UTC time.

        Returns:
            Accepted with a pending ComplaintRecord, or Rejected.
        """
        # Plain equality; this is a coarse deterrent, not authentication
        if self.shared_secret and provided_secret != self.shared_secret:
            logger.warning("Rejected submission from %s: bad secret", caller_key)
            return reject(RejectionReason.UNAUTHORIZED, "Unauthorized")

        if not self.rate_limiter.check(caller_key):
            logger.warning("Rejected submission from %s: rate limited", caller_key)
            return reject(
                RejectionReason.RATE_LIMITED, "Too many submissions. Try again later."
            )

        payload = parse_payload(raw_payload)
        if payload is None:
            return reject(RejectionReason.INVALID_PAYLOAD, "Invalid JSON")

        fields = {
            rule.name: sanitize_string(payload.get(rule.name), rule.max_length)
            for rule in COMPLAINT_FIELDS
        }

        reporter, rejection = sanitize_reporter(payload.get("reporter"))
        if rejection is not None:
            logger.warning("Rejected submission from %s: invalid email", caller_key)
            return rejection

        missing = [
            rule.name
            for rule in COMPLAINT_FIELDS
            if rule.required and not fields[rule.name]
        ]
        if missing:
            logger.warning(
                "Rejected submission from %s: missing %s",
                caller_key,
                ", ".join(missing),
            )
            return reject(RejectionReason.MISSING_FIELDS, "Missing required fields")

        for rule in COMPLAINT_FIELDS:
            if len(fields[rule.name]) < rule.min_length:
                logger.warning(
                    "Rejected submission from %s: %s too short", caller_key, rule.name
                )
                return reject(
                    RejectionReason.TOO_SHORT,
                    f"Complaint {rule.name} too short",
                    field=rule.name,
                )

        submitted_at = now or datetime.now(UTC)
        complaint_id = self._id_factory(int(submitted_at.timestamp() * 1000))
        record = ComplaintRecord(
            complaint_id=complaint_id,
            status=ComplaintStatus.PENDING,
            reporter=reporter,
            created_at=submitted_at,
            updated_at=submitted_at,
            **fields,
        )
        logger.info("Accepted submission %s from %s", complaint_id, caller_key)
        return Accepted(record=record)

    def new_complaint_id(self, now: datetime | None = None) -> str:
        """Draw a fresh identifier, used when a generated one collides."""
        moment = now or datetime.now(UTC)
        return self._id_factory(int(moment.timestamp() * 1000))
