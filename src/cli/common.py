"""Shared wiring for CLI commands: settings overrides and handler calls."""

import dataclasses
import os
from pathlib import Path
from typing import Annotated, Any

import typer

from src.api.events import HttpEvent
from src.api.handlers import ComplaintHandlers, dispatch
from src.cli.display import print_error
from src.config import Settings
from src.models.enums import StorageBackend

# Default paths
DEFAULT_AUDIT_DIR = Path("audit_logs")

BackendOption = Annotated[
    str | None,
    typer.Option(
        "--backend",
        "-b",
        help="Storage backend: memory, file or mongo (default: file)",
    ),
]
DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", help="Directory for the file backend"),
]
AuditDirOption = Annotated[
    Path | None,
    typer.Option("--audit-dir", help="Directory for audit logs"),
]


def build_settings(
    backend: str | None = None,
    data_dir: Path | None = None,
    audit_dir: Path | None = None,
) -> Settings:
    """Load settings from the environment and apply CLI overrides.

    Without ``--backend`` or $STORAGE_BACKEND the CLI uses the file backend,
    since the memory backend would forget everything between commands.

    Raises:
        typer.Exit: If the configuration is invalid.
    """
    try:
        settings = Settings.from_env()
        changes: dict[str, Any] = {}
        if backend:
            changes["storage_backend"] = StorageBackend(backend.strip().lower())
        elif "STORAGE_BACKEND" not in os.environ:
            changes["storage_backend"] = StorageBackend.FILE
        if data_dir is not None:
            changes["data_dir"] = data_dir
        changes["audit_log_dir"] = (
            audit_dir or settings.audit_log_dir or DEFAULT_AUDIT_DIR
        )
        return dataclasses.replace(settings, **changes)
    except ValueError as e:
        print_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=2) from None


def build_handlers(
    backend: str | None = None,
    data_dir: Path | None = None,
    audit_dir: Path | None = None,
) -> ComplaintHandlers:
    """Handlers wired from the environment plus CLI overrides."""
    return ComplaintHandlers.from_settings(build_settings(backend, data_dir, audit_dir))


def call_handler(handlers: ComplaintHandlers, name: str, event: HttpEvent) -> Any:
    """Run a handler and return its JSON payload.

    Raises:
        typer.Exit: With code 1 if the handler answered with an error.
    """
    response = dispatch(handlers, name, event)
    payload = response.json_payload()
    if response.status_code >= 400:
        message = payload.get("error") if isinstance(payload, dict) else None
        print_error(f"{message or 'Request failed'} (HTTP {response.status_code})")
        raise typer.Exit(code=1)
    return payload
