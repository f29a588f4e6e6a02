"""Rich display utilities for CLI output."""

from datetime import datetime

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.audit.models import AuditEvent
from src.models.complaint import ComplaintRecord
from src.models.enums import ComplaintStatus

console = Console()


def format_status(status: ComplaintStatus) -> Text:
    """Format a complaint status with color coding.

    Args:
        status: Complaint status.

    Returns:
        Colored text representation.
    """
    style_map = {
        ComplaintStatus.PENDING: "yellow",
        ComplaintStatus.APPROVED: "green",
        ComplaintStatus.REJECTED: "red",
    }
    return Text(status.value.upper(), style=style_map.get(status, "white"))


def format_datetime(dt: datetime | None) -> str:
    """Format a datetime for display.

    Args:
        dt: Datetime to format.

    Returns:
        Formatted string or 'N/A'.
    """
    if dt is None:
        return "N/A"
    return dt.strftime("%Y-%m-%d %H:%M UTC")


def _truncate(text: str, limit: int) -> str:
    """Shorten user text and escape it so it is never read as markup."""
    return escape(text[:limit] + "..." if len(text) > limit else text)


def create_complaints_table(complaints: list[ComplaintRecord]) -> Table:
    """Create a table listing complaints.

    Args:
        complaints: List of complaint records.

    Returns:
        Rich Table object.
    """
    table = Table(title="Complaints", show_header=True)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Department", style="white")
    table.add_column("Program", style="white")
    table.add_column("Title", style="white")
    table.add_column("Status", justify="center")
    table.add_column("Submitted", style="dim")

    for complaint in complaints:
        table.add_row(
            complaint.complaint_id,
            _truncate(complaint.department, 20),
            _truncate(complaint.program, 20),
            _truncate(complaint.title, 40),
            format_status(complaint.status),
            format_datetime(complaint.created_at),
        )

    return table


def create_complaint_panel(
    complaint: ComplaintRecord, max_details: int = 800
) -> Panel:
    """Create a panel displaying complaint details.

    Args:
        complaint: Complaint record to display.
        max_details: Maximum characters of the details text to show.

    Returns:
        Rich Panel object.
    """
    lines = [
        f"[bold]Complaint ID:[/bold] {complaint.complaint_id}",
        f"[bold]Status:[/bold] {complaint.status.value.upper()}",
        f"[bold]Department:[/bold] {escape(complaint.department)}",
        f"[bold]Program:[/bold] {escape(complaint.program)}",
        f"[bold]Submitted:[/bold] {format_datetime(complaint.created_at)}",
        f"[bold]Updated:[/bold] {format_datetime(complaint.updated_at)}",
        "",
        f"[bold cyan]{escape(complaint.title)}[/bold cyan]",
        _truncate(complaint.details, max_details),
    ]

    if complaint.reporter:
        lines.extend([
            "",
            "[bold cyan]Reporter[/bold cyan]",
            f"  Name: {escape(complaint.reporter.name or 'N/A')}",
            f"  Email: {escape(complaint.reporter.email or 'N/A')}",
            f"  Username: {escape(complaint.reporter.username or 'N/A')}",
        ])
    else:
        lines.extend(["", "[dim]Submitted anonymously[/dim]"])

    return Panel(
        "\n".join(lines),
        title=f"[bold]Complaint: {complaint.complaint_id}[/bold]",
        border_style="blue",
    )


def create_audit_table(events: list[AuditEvent]) -> Table:
    """Create a table of audit events for one complaint.

    Args:
        events: Audit events, oldest first.

    Returns:
        Rich Table object.
    """
    table = Table(title="Audit Trail", show_header=True)
    table.add_column("Time", style="dim", no_wrap=True)
    table.add_column("Action", style="magenta", no_wrap=True)
    table.add_column("User", style="white")
    table.add_column("Details", style="white")

    for event in events:
        details = ", ".join(f"{k}={v}" for k, v in event.details.items())
        table.add_row(
            format_datetime(event.timestamp),
            event.action.value.replace("_", " "),
            event.user_name,
            details or "-",
        )

    return table


def print_error(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_info(message: str) -> None:
    console.print(f"[bold blue]Info:[/bold blue] {message}")


def prompt_confirmation(message: str) -> bool:
    """Ask a yes/no question; anything but y or yes means no."""
    response = console.input(f"{escape(message)} \\[y/N]: ").strip().lower()
    return response in ("y", "yes")
