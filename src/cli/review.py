"""CLI commands for reviewing stored complaints.

Every command goes through the same request handlers the HTTP functions
use, so status rules, audit logging and error responses are identical.
"""

import json
import logging
from typing import Annotated

import typer

from src.api.events import HttpEvent
from src.audit.logger import AuditLogger
from src.cli.common import (
    AuditDirOption,
    BackendOption,
    DataDirOption,
    build_handlers,
    build_settings,
    call_handler,
)
from src.cli.display import (
    console,
    create_audit_table,
    create_complaint_panel,
    create_complaints_table,
    print_info,
    print_success,
    prompt_confirmation,
)
from src.models.complaint import ComplaintRecord
from src.models.enums import ReviewAction

logger = logging.getLogger(__name__)

# Create Typer app for review commands
app = typer.Typer(
    name="review",
    help="List, inspect, approve, reject and delete complaints.",
    no_args_is_help=True,
)


def _update_status(
    complaint_id: str,
    action: ReviewAction,
    backend: str | None,
    data_dir,
    audit_dir,
) -> None:
    handlers = build_handlers(backend, data_dir, audit_dir)
    event = HttpEvent(
        http_method="POST",
        body=json.dumps({"complaintId": complaint_id, "action": action.value}),
    )
    payload = call_handler(handlers, "update", event)
    print_success(payload["message"])


@app.command("list")
def list_complaints(
    status: Annotated[
        str | None,
        typer.Option(
            "--status",
            "-s",
            help="Filter by status (pending, approved, rejected)",
        ),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", help="Show at most this many complaints"),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print raw JSON instead of a table"),
    ] = False,
    backend: BackendOption = None,
    data_dir: DataDirOption = None,
    audit_dir: AuditDirOption = None,
) -> None:
    """List complaints, newest first."""
    handlers = build_handlers(backend, data_dir, audit_dir)
    query: dict[str, str] = {}
    if status:
        query["status"] = status
    if limit is not None:
        query["limit"] = str(limit)

    payload = call_handler(
        handlers, "list", HttpEvent(http_method="GET", query_parameters=query)
    )

    if as_json:
        typer.echo(json.dumps(payload, indent=2))
        return
    if not payload:
        print_info("No complaints found matching the criteria.")
        return

    complaints = [ComplaintRecord.model_validate(item) for item in payload]
    console.print()
    console.print(create_complaints_table(complaints))
    console.print()
    console.print(f"Total: {len(complaints)} complaint(s)")


@app.command("show")
def show_complaint(
    complaint_id: Annotated[str, typer.Argument(help="Complaint ID to display")],
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print raw JSON instead of a panel"),
    ] = False,
    backend: BackendOption = None,
    data_dir: DataDirOption = None,
    audit_dir: AuditDirOption = None,
) -> None:
    """Display one complaint."""
    handlers = build_handlers(backend, data_dir, audit_dir)
    payload = call_handler(
        handlers,
        "get",
        HttpEvent(http_method="GET", query_parameters={"complaintId": complaint_id}),
    )

    if as_json:
        typer.echo(json.dumps(payload, indent=2))
        return
    console.print(create_complaint_panel(ComplaintRecord.model_validate(payload)))


@app.command("approve")
def approve_complaint(
    complaint_id: Annotated[str, typer.Argument(help="Complaint ID to approve")],
    backend: BackendOption = None,
    data_dir: DataDirOption = None,
    audit_dir: AuditDirOption = None,
) -> None:
    """Approve a pending complaint."""
    _update_status(complaint_id, ReviewAction.APPROVE, backend, data_dir, audit_dir)


@app.command("reject")
def reject_complaint(
    complaint_id: Annotated[str, typer.Argument(help="Complaint ID to reject")],
    backend: BackendOption = None,
    data_dir: DataDirOption = None,
    audit_dir: AuditDirOption = None,
) -> None:
    """Reject a pending complaint."""
    _update_status(complaint_id, ReviewAction.REJECT, backend, data_dir, audit_dir)


@app.command("delete")
def delete_complaint(
    complaint_id: Annotated[str, typer.Argument(help="Complaint ID to delete")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Delete without asking for confirmation"),
    ] = False,
    backend: BackendOption = None,
    data_dir: DataDirOption = None,
    audit_dir: AuditDirOption = None,
) -> None:
    """Delete a complaint permanently."""
    if not yes and not prompt_confirmation(f"Delete complaint '{complaint_id}'?"):
        print_info("Delete cancelled.")
        raise typer.Exit(code=0)

    handlers = build_handlers(backend, data_dir, audit_dir)
    event = HttpEvent(
        http_method="DELETE", query_parameters={"complaintId": complaint_id}
    )
    payload = call_handler(handlers, "delete", event)
    print_success(f"{payload['message']}: {complaint_id}")


@app.command("history")
def complaint_history(
    complaint_id: Annotated[str, typer.Argument(help="Complaint ID to trace")],
    audit_dir: AuditDirOption = None,
) -> None:
    """Show the audit trail for a complaint."""
    settings = build_settings(audit_dir=audit_dir)
    assert settings.audit_log_dir is not None
    events = AuditLogger(log_dir=settings.audit_log_dir).get_events(complaint_id)

    if not events:
        print_info(f"No audit events found for '{complaint_id}'.")
        return

    console.print()
    console.print(create_audit_table(events))
