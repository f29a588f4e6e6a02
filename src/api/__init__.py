"""HTTP-facing request handlers for complaint records."""

from src.api.events import (
    HttpEvent,
    HttpResponse,
    caller_key,
    cors_headers,
    json_response,
)
from src.api.handlers import (
    HANDLER_NAMES,
    ComplaintHandlers,
    dispatch,
    dispatch_raw,
)

__all__ = [
    "HANDLER_NAMES",
    "ComplaintHandlers",
    "HttpEvent",
    "HttpResponse",
    "caller_key",
    "cors_headers",
    "dispatch",
    "dispatch_raw",
    "json_response",
]
