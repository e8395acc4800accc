"""Scheduling layer."""

from .apsched_adapter import (
    APSchedulerAdapter,
    DEFAULT_INTERVAL,
    INTERVAL_CRONTABS,
    interval_to_crontab,
    job_id_for,
)

__all__ = [
    "APSchedulerAdapter",
    "DEFAULT_INTERVAL",
    "INTERVAL_CRONTABS",
    "interval_to_crontab",
    "job_id_for",
]
