"""runnotifier - HTTP notifications for run lifecycle events."""

__version__ = "0.1.0"
