"""CLI commands for submitting complaints and invoking handlers locally.

``submit`` sends a JSON payload through the same intake path as the
public submit function. ``invoke`` replays a raw function event against
any handler, which is useful for exercising the HTTP surface offline.
"""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer

from src.api.events import HttpEvent
from src.api.handlers import HANDLER_NAMES, dispatch_raw
from src.cli.common import (
    AuditDirOption,
    BackendOption,
    DataDirOption,
    build_handlers,
    call_handler,
)
from src.cli.display import console, print_error, print_success
from src.config import SECRET_HEADER

logger = logging.getLogger(__name__)

# Create Typer app for intake commands
app = typer.Typer(
    name="intake",
    help="Submit complaints and invoke request handlers locally.",
    no_args_is_help=True,
)


def _read_text(file_path: Path) -> str:
    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print_error(f"Could not read {file_path}: {e}")
        raise typer.Exit(code=1) from None


@app.command("submit")
def submit_command(
    file_path: Annotated[
        Path,
        typer.Argument(
            help="Path to a JSON file with the complaint payload",
            exists=True,
            readable=True,
        ),
    ],
    caller_key: Annotated[
        str,
        typer.Option(
            "--caller-key",
            help="Client address used as the rate-limit key",
        ),
    ] = "cli",
    secret: Annotated[
        str | None,
        typer.Option(
            "--secret",
            help="Shared secret to send (default: $FUNCTION_SECRET)",
        ),
    ] = None,
    output_json: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output the response as JSON"),
    ] = False,
    backend: BackendOption = None,
    data_dir: DataDirOption = None,
    audit_dir: AuditDirOption = None,
) -> None:
    """Submit a complaint from a JSON file.

    The payload is validated exactly as a web submission would be.

    Example:
        complaints intake submit complaint.json --backend file
    """
    handlers = build_handlers(backend, data_dir, audit_dir)
    provided = secret if secret is not None else handlers.settings.function_secret

    headers = {"Content-Type": "application/json"}
    if provided:
        headers[SECRET_HEADER] = provided
    event = HttpEvent(
        http_method="POST",
        headers=headers,
        body=_read_text(file_path),
        request_context={"identity": {"sourceIp": caller_key}},
    )

    payload = call_handler(handlers, "submit", event)
    if output_json:
        console.print_json(json.dumps(payload))
        return
    print_success(f"Complaint submitted. Complaint ID: {payload['complaintId']}")


@app.command("invoke")
def invoke_command(
    handler: Annotated[
        str,
        typer.Argument(help=f"Handler to run ({', '.join(HANDLER_NAMES)})"),
    ],
    event_file: Annotated[
        Path,
        typer.Argument(
            help="Path to a JSON file holding a raw function event",
            exists=True,
            readable=True,
        ),
    ],
    backend: BackendOption = None,
    data_dir: DataDirOption = None,
    audit_dir: AuditDirOption = None,
) -> None:
    """Run one handler against a raw event and print its response.

    Example:
        complaints intake invoke list event.json
    """
    name = handler.strip().lower()
    if name not in HANDLER_NAMES:
        print_error(
            f"Unknown handler '{handler}'. Choose from: {', '.join(HANDLER_NAMES)}"
        )
        raise typer.Exit(code=2)

    try:
        raw_event = json.loads(_read_text(event_file))
    except json.JSONDecodeError as e:
        print_error(f"Invalid JSON file: {e}")
        raise typer.Exit(code=1) from None
    if not isinstance(raw_event, dict):
        print_error("Event file must contain a JSON object")
        raise typer.Exit(code=1)

    handlers = build_handlers(backend, data_dir, audit_dir)
    response = dispatch_raw(handlers, name, raw_event)

    console.print(f"[bold]HTTP {response.status_code}[/bold]")
    if response.body:
        console.print_json(response.body)
    if response.status_code >= 400:
        raise typer.Exit(code=1)
