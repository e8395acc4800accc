"""Scheduled complaint monitoring with deduplicated storage."""

__version__ = "0.1.0"
