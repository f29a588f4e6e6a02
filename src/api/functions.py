"""Function-runtime entry points (AWS Lambda / Netlify Functions style).

Each entry point takes the runtime's raw event dict and returns a
``{"statusCode", "headers", "body"}`` dict. Handlers are built from the
environment on first use and reused by warm invocations, which keeps the
in-process rate limiter's counters alive between requests. Storage
connections are not cached; each request opens and closes its own.
"""

import logging
from typing import Any

from src.api.handlers import ComplaintHandlers, dispatch_raw
from src.config import Settings, configure_logging

logger = logging.getLogger(__name__)

_handlers: ComplaintHandlers | None = None


def get_handlers() -> ComplaintHandlers:
    """Get or create the process-wide handlers from environment settings.

    Raises:
        ValueError: If the environment configuration is invalid.
    """
    global _handlers
    if _handlers is None:
        settings = Settings.from_env()
        configure_logging(settings.log_level)
        _handlers = ComplaintHandlers.from_settings(settings)
        logger.info(
            "Complaint handlers ready (backend=%s, secret=%s)",
            settings.storage_backend.value,
            "on" if settings.secret_required else "off",
        )
    return _handlers


def reset_handlers() -> None:
    """Drop the cached handlers so the next call re-reads the environment."""
    global _handlers
    _handlers = None


def _invoke(name: str, event: dict[str, Any] | None) -> dict[str, Any]:
    return dispatch_raw(get_handlers(), name, event).to_dict()


def submit_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    return _invoke("submit", event)


def list_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    return _invoke("list", event)


def get_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    return _invoke("get", event)


def update_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    return _invoke("update", event)


def delete_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    return _invoke("delete", event)
