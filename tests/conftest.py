"""Pytest configuration and fixtures."""

import json
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from src.api.events import HttpEvent
from src.api.handlers import ComplaintHandlers
from src.audit.logger import AuditLogger
from src.config import Settings
from src.intake.ratelimit import InMemoryRateLimiter
from src.intake.validator import IntakeValidator
from src.storage.memory import InMemoryComplaintStore
from src.storage.providers import SharedStoreProvider

FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fake_clock() -> FakeClock:
    """Return a controllable clock for rate-limit windows."""
    return FakeClock()


@pytest.fixture
def valid_payload() -> dict[str, Any]:
    """Return a complete anonymous submission."""
    return {
        "department": "CS",
        "program": "B.Tech",
        "title": "Broken AC",
        "details": "The AC in room 204 has been broken for two weeks.",
    }


@pytest.fixture
def settings() -> Settings:
    """Return default settings (memory backend, no secret)."""
    return Settings()


@pytest.fixture
def memory_store() -> InMemoryComplaintStore:
    """Return an empty in-memory store."""
    return InMemoryComplaintStore()


@pytest.fixture
def audit_logger(tmp_path: Path) -> AuditLogger:
    """Return an audit logger writing under tmp_path."""
    return AuditLogger(log_dir=tmp_path / "audit_logs")


@pytest.fixture
def handlers(
    settings: Settings,
    memory_store: InMemoryComplaintStore,
    audit_logger: AuditLogger,
    fake_clock: FakeClock,
) -> ComplaintHandlers:
    """Return handlers wired to the memory store and a generous limiter."""
    validator = IntakeValidator(
        rate_limiter=InMemoryRateLimiter(
            window_seconds=60, max_requests=100, clock=fake_clock
        )
    )
    return ComplaintHandlers(
        settings=settings,
        store_provider=SharedStoreProvider(memory_store),
        validator=validator,
        audit_logger=audit_logger,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def make_event() -> Callable[..., HttpEvent]:
    """Return a factory for HttpEvent objects."""

    def _make(
        method: str = "GET",
        body: Any = None,
        query: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpEvent:
        if body is not None and not isinstance(body, str):
            body = json.dumps(body)
        return HttpEvent(
            http_method=method,
            body=body,
            query_parameters=query or {},
            headers=headers or {},
        )

    return _make
