"""Main CLI entry point for the complaint desk."""

from typing import Annotated

import typer

from src.cli.intake import app as intake_app
from src.cli.review import app as review_app
from src.config import configure_logging

# Create main Typer app
app = typer.Typer(
    name="complaints",
    help="Anonymous complaint intake and review.",
    no_args_is_help=True,
)

# Register subcommands
app.add_typer(intake_app, name="intake")
app.add_typer(review_app, name="review")


@app.callback()
def setup(
    log_level: Annotated[
        str,
        typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)"),
    ] = "WARNING",
) -> None:
    """Configure logging before any command runs."""
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from None


def main() -> None:
    """Entry point for the complaints CLI."""
    app()


if __name__ == "__main__":
    main()
