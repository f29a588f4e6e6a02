"""Request handlers for the complaint CRUD operations.

Each handler takes an ``HttpEvent`` and returns an ``HttpResponse``. Storage
is acquired per request from the injected provider and released before the
handler returns. Client errors come back as specific 4xx responses; storage
failures are logged and reported as a generic 500.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from src.api.events import (
    HttpEvent,
    HttpResponse,
    caller_key,
    cors_headers,
    json_response,
)
from src.audit.logger import AuditLogger, EventType, generate_event_id
from src.audit.models import (
    ComplaintCreatedEvent,
    ComplaintDeletedEvent,
    StatusChangedEvent,
)
from src.config import SECRET_HEADER, Settings
from src.intake.ratelimit import InMemoryRateLimiter
from src.intake.validator import Accepted, IntakeValidator
from src.models.complaint import ComplaintRecord, required_status_for
from src.models.enums import ComplaintStatus, ReviewAction
from src.storage.base import (
    ComplaintStore,
    DuplicateComplaintError,
    StorageError,
    StoreProvider,
)
from src.storage.providers import SettingsStoreProvider

logger = logging.getLogger(__name__)

# Regenerate the identifier this many times before giving up on an insert
MAX_ID_ATTEMPTS = 5
MAX_LIST_LIMIT = 500

SUBMIT_METHODS = ("POST",)
LIST_METHODS = ("GET",)
GET_METHODS = ("GET", "POST")
UPDATE_METHODS = ("POST", "PATCH", "PUT")
DELETE_METHODS = ("POST", "DELETE")

# Status values a reviewer may send directly instead of an action
_STATUS_ALIASES = {
    ComplaintStatus.APPROVED.value: ComplaintStatus.APPROVED,
    ComplaintStatus.REJECTED.value: ComplaintStatus.REJECTED,
}


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


def _resolve_target_status(payload: dict[str, Any]) -> ComplaintStatus | None:
    """Map an ``action`` (approve/reject) or ``status`` field to a status."""
    action = payload.get("action")
    if isinstance(action, str):
        try:
            return ReviewAction(action.strip().lower()).resulting_status
        except ValueError:
            return None
    status = payload.get("status")
    if isinstance(status, str):
        return _STATUS_ALIASES.get(status.strip().lower())
    return None


class ComplaintHandlers:
    """The complaint CRUD handlers, wired to their collaborators.

    Attributes:
        settings: Active configuration (CORS origins, secret, limits).
        store_provider: Source of a store for each request.
        validator: Intake validator used by ``submit_complaint``.
        audit_logger: Optional audit trail; None disables auditing.
    """

    def __init__(
        self,
        settings: Settings,
        store_provider: StoreProvider,
        validator: IntakeValidator | None = None,
        audit_logger: AuditLogger | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.settings = settings
        self.store_provider = store_provider
        self.validator = validator or IntakeValidator(
            rate_limiter=InMemoryRateLimiter(
                window_seconds=settings.rate_limit_window_seconds,
                max_requests=settings.rate_limit_max,
            ),
            shared_secret=settings.function_secret,
        )
        self.audit_logger = audit_logger
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "ComplaintHandlers":
        """Wire handlers with the store and audit log named in ``settings``."""
        audit_logger = (
            AuditLogger(settings.audit_log_dir) if settings.audit_log_dir else None
        )
        return cls(
            settings=settings,
            store_provider=SettingsStoreProvider(settings),
            audit_logger=audit_logger,
        )

    # ------------------------------------------------------------------
    # Response helpers
    # ------------------------------------------------------------------

    def _respond(
        self,
        event: HttpEvent,
        methods: tuple[str, ...],
        status_code: int,
        payload: Any,
    ) -> HttpResponse:
        headers = cors_headers(
            self.settings.allowed_origins, methods, event.header("origin")
        )
        return json_response(status_code, payload, headers)

    def _error(
        self,
        event: HttpEvent,
        methods: tuple[str, ...],
        status_code: int,
        message: str,
    ) -> HttpResponse:
        return self._respond(event, methods, status_code, {"error": message})

    def _preflight(
        self, event: HttpEvent, methods: tuple[str, ...]
    ) -> HttpResponse | None:
        """Answer CORS preflights and unsupported methods; None to proceed."""
        if event.http_method == "OPTIONS":
            headers = cors_headers(
                self.settings.allowed_origins, methods, event.header("origin")
            )
            return HttpResponse(status_code=204, headers=headers, body="")
        if event.http_method not in methods:
            return self._error(event, methods, 405, "Method not allowed")
        return None

    def _server_error(
        self, event: HttpEvent, methods: tuple[str, ...]
    ) -> HttpResponse:
        return self._error(event, methods, 500, "Internal server error")

    def _audit(self, audit_event: EventType) -> None:
        if self.audit_logger is None:
            return
        try:
            self.audit_logger.log_event(audit_event)
        except OSError as e:
            logger.warning(
                "Audit event %s for %s not written: %s",
                audit_event.event_id,
                audit_event.resource_id,
                e,
            )

    def _complaint_id_from(
        self, event: HttpEvent, payload: dict[str, Any] | None
    ) -> str | None:
        """complaintId (or legacy ``id``) from the query string or body."""
        for source in (event.query_parameters, payload or {}):
            for key in ("complaintId", "id"):
                value = source.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
        return None

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    def _insert_unique(
        self, store: ComplaintStore, record: ComplaintRecord
    ) -> ComplaintRecord:
        """Insert ``record``, drawing a new identifier on collision."""
        for attempt in range(1, MAX_ID_ATTEMPTS + 1):
            if store.find_one({"complaintId": record.complaint_id}) is None:
                try:
                    store.insert(record.to_document())
                    return record
                except DuplicateComplaintError:
                    pass
            logger.warning(
                "Complaint id %s already in use (attempt %d/%d)",
                record.complaint_id,
                attempt,
                MAX_ID_ATTEMPTS,
            )
            record = record.model_copy(
                update={"complaint_id": self.validator.new_complaint_id()}
            )
        raise StorageError("Could not allocate a unique complaint id")

    def submit_complaint(self, event: HttpEvent) -> HttpResponse:
        """Validate a submission and store it as a pending complaint."""
        early = self._preflight(event, SUBMIT_METHODS)
        if early is not None:
            return early

        result = self.validator.evaluate(
            event.body_text(),
            caller_key(event),
            event.header(SECRET_HEADER),
            now=self._clock(),
        )
        if not isinstance(result, Accepted):
            return self._respond(
                event, SUBMIT_METHODS, result.status_code, result.to_body()
            )

        try:
            with self.store_provider.session() as store:
                record = self._insert_unique(store, result.record)
        except StorageError:
            logger.exception("DB insert failed")
            return self._server_error(event, SUBMIT_METHODS)

        self._audit(
            ComplaintCreatedEvent(
                event_id=generate_event_id(),
                resource_id=record.complaint_id,
                department=record.department,
                program=record.program,
                initial_status=record.status.value,
                identified=record.reporter is not None,
            )
        )
        logger.info("Complaint %s submitted", record.complaint_id)
        return self._respond(
            event,
            SUBMIT_METHODS,
            201,
            {
                "success": True,
                "complaintId": record.complaint_id,
                "message": "Complaint submitted successfully",
            },
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list_complaints(self, event: HttpEvent) -> HttpResponse:
        """List complaints, newest first, optionally filtered by status."""
        early = self._preflight(event, LIST_METHODS)
        if early is not None:
            return early

        query_filter: dict[str, Any] = {}
        status = event.query("status")
        if status:
            try:
                query_filter["status"] = ComplaintStatus(status.strip().lower()).value
            except ValueError:
                return self._error(event, LIST_METHODS, 400, "Invalid status filter")

        limit: int | None = None
        raw_limit = event.query("limit")
        if raw_limit:
            try:
                limit = int(raw_limit)
            except ValueError:
                limit = 0
            if not 1 <= limit <= MAX_LIST_LIMIT:
                return self._error(
                    event,
                    LIST_METHODS,
                    400,
                    f"limit must be between 1 and {MAX_LIST_LIMIT}",
                )

        try:
            with self.store_provider.session() as store:
                documents = store.find(
                    query_filter, sort_field="createdAt", descending=True, limit=limit
                )
        except StorageError:
            logger.exception("DB query failed")
            return self._server_error(event, LIST_METHODS)

        complaints: list[dict[str, Any]] = []
        for document in documents:
            try:
                record = ComplaintRecord.model_validate(document)
            except ValidationError as e:
                logger.warning(
                    "Skipping invalid complaint %s: %s", document.get("complaintId"), e
                )
                continue
            complaints.append(record.to_json_dict())
        return self._respond(event, LIST_METHODS, 200, complaints)

    def get_complaint(self, event: HttpEvent) -> HttpResponse:
        """Fetch one complaint by complaintId."""
        early = self._preflight(event, GET_METHODS)
        if early is not None:
            return early

        payload = event.json_body() if event.http_method == "POST" else {}
        if payload is None:
            return self._error(event, GET_METHODS, 400, "Invalid JSON")
        complaint_id = self._complaint_id_from(event, payload)
        if complaint_id is None:
            return self._error(event, GET_METHODS, 400, "Complaint ID required")

        try:
            with self.store_provider.session() as store:
                document = store.find_one({"complaintId": complaint_id})
        except StorageError:
            logger.exception("DB lookup failed for %s", complaint_id)
            return self._server_error(event, GET_METHODS)

        if document is None:
            return self._error(event, GET_METHODS, 404, "Complaint not found")
        try:
            record = ComplaintRecord.model_validate(document)
        except ValidationError:
            logger.exception("Stored complaint %s is invalid", complaint_id)
            return self._server_error(event, GET_METHODS)
        return self._respond(event, GET_METHODS, 200, record.to_json_dict())

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_complaint(self, event: HttpEvent) -> HttpResponse:
        """Approve or reject a pending complaint."""
        early = self._preflight(event, UPDATE_METHODS)
        if early is not None:
            return early

        payload = event.json_body()
        if payload is None:
            return self._error(event, UPDATE_METHODS, 400, "Invalid JSON")
        complaint_id = self._complaint_id_from(event, payload)
        if complaint_id is None:
            return self._error(event, UPDATE_METHODS, 400, "Complaint ID required")
        new_status = _resolve_target_status(payload)
        required = None if new_status is None else required_status_for(new_status)
        if new_status is None or required is None:
            return self._error(
                event, UPDATE_METHODS, 400, "Action must be 'approve' or 'reject'"
            )

        now = self._clock()
        try:
            with self.store_provider.session() as store:
                # Conditional on the source status so concurrent reviews
                # cannot both win
                matched = store.update_one(
                    {"complaintId": complaint_id, "status": required.value},
                    {"status": new_status.value, "updatedAt": now},
                )
                current = (
                    None
                    if matched
                    else store.find_one({"complaintId": complaint_id})
                )
        except StorageError:
            logger.exception("DB update failed for %s", complaint_id)
            return self._server_error(event, UPDATE_METHODS)

        if not matched:
            if current is None:
                return self._error(event, UPDATE_METHODS, 404, "Complaint not found")
            return self._error(
                event,
                UPDATE_METHODS,
                409,
                f"Complaint is already {current.get('status')}",
            )

        self._audit(
            StatusChangedEvent(
                event_id=generate_event_id(),
                resource_id=complaint_id,
                previous_status=required.value,
                new_status=new_status.value,
            )
        )
        logger.info("Complaint %s %s", complaint_id, new_status.value)
        return self._respond(
            event,
            UPDATE_METHODS,
            200,
            {
                "success": True,
                "complaintId": complaint_id,
                "status": new_status.value,
                "message": f"Complaint {new_status.value}",
            },
        )

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_complaint(self, event: HttpEvent) -> HttpResponse:
        """Delete a complaint by complaintId."""
        early = self._preflight(event, DELETE_METHODS)
        if early is not None:
            return early

        payload = event.json_body()
        if payload is None:
            return self._error(event, DELETE_METHODS, 400, "Invalid JSON")
        complaint_id = self._complaint_id_from(event, payload)
        if complaint_id is None:
            return self._error(event, DELETE_METHODS, 400, "Complaint ID required")

        try:
            with self.store_provider.session() as store:
                existing = store.find_one({"complaintId": complaint_id})
                deleted = store.delete_one({"complaintId": complaint_id})
        except StorageError:
            logger.exception("DB delete failed for %s", complaint_id)
            return self._server_error(event, DELETE_METHODS)

        if not deleted:
            return self._error(event, DELETE_METHODS, 404, "Complaint not found")

        self._audit(
            ComplaintDeletedEvent(
                event_id=generate_event_id(),
                resource_id=complaint_id,
                final_status=(existing or {}).get("status"),
            )
        )
        logger.info("Complaint %s deleted", complaint_id)
        return self._respond(
            event,
            DELETE_METHODS,
            200,
            {"success": True, "message": "Complaint deleted"},
        )


# Handler names exposed to function runtimes and the CLI
HANDLER_NAMES: dict[str, str] = {
    "submit": "submit_complaint",
    "list": "list_complaints",
    "get": "get_complaint",
    "update": "update_complaint",
    "delete": "delete_complaint",
}


HANDLER_METHODS: dict[str, tuple[str, ...]] = {
    "submit": SUBMIT_METHODS,
    "list": LIST_METHODS,
    "get": GET_METHODS,
    "update": UPDATE_METHODS,
    "delete": DELETE_METHODS,
}


def dispatch(
    handlers: ComplaintHandlers, name: str, event: HttpEvent
) -> HttpResponse:
    """Invoke the handler registered under ``name``.

    Raises:
        KeyError: If ``name`` is not a known handler.
    """
    method = getattr(handlers, HANDLER_NAMES[name])
    return method(event)


def dispatch_raw(
    handlers: ComplaintHandlers, name: str, raw_event: Any
) -> HttpResponse:
    """Parse a raw runtime event and invoke ``name``.

    Events that cannot be parsed get a 400 instead of an exception.

    Raises:
        KeyError: If ``name`` is not a known handler.
    """
    methods = HANDLER_METHODS[name]
    try:
        event = HttpEvent.from_raw(raw_event)
    except ValidationError as e:
        logger.warning(
            "Rejected malformed %s event (%d field errors)", name, e.error_count()
        )
        headers = cors_headers(handlers.settings.allowed_origins, methods)
        return json_response(400, {"error": "Invalid request"}, headers)
    return dispatch(handlers, name, event)
