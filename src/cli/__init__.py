"""CLI module for the complaint desk."""

from src.cli.intake import app as intake_app
from src.cli.main import app, main
from src.cli.review import app as review_app

__all__ = ["app", "intake_app", "main", "review_app"]
