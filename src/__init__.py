"""Complaint desk: intake, storage and request handlers for complaint records."""

__version__ = "0.1.0"
