"""AI text enhancement core of the TaskFlow task manager."""

__version__ = "0.1.0"
