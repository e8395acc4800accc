"""APScheduler wrapper exposing higher level helpers."""

from __future__ import annotations

from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..logging_conf import configure_logging

DEFAULT_INTERVAL = "1h"

INTERVAL_CRONTABS: dict[str, str] = {
    "10min": "*/10 * * * *",
    "30min": "*/30 * * * *",
    "1h": "0 * * * *",
    "3h": "0 */3 * * *",
    "6h": "0 */6 * * *",
    "12h": "0 */12 * * *",
    "diario": "0 9 * * *",
    "1d": "0 9 * * *",
    "semanal": "0 9 * * 1",
    "1w": "0 9 * * 1",
}


def interval_to_crontab(token: str | None) -> str:
    """Map an interval token to a crontab; unknown tokens run hourly."""

    key = (token or "").strip().lower()
    return INTERVAL_CRONTABS.get(key, INTERVAL_CRONTABS[DEFAULT_INTERVAL])


def job_id_for(entity: str) -> str:
    return f"entity::{entity}"


class APSchedulerAdapter:
    """Manage APScheduler jobs for monitored entities."""

    def __init__(self, timezone: str = "America/Sao_Paulo") -> None:
        self.timezone = timezone
        self.scheduler = BackgroundScheduler(timezone=timezone)
        self.logger = configure_logging().bind(component="scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started", timezone=self.timezone)

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_entity(self, entity: str, crontab: str, callback: Callable[[str], object]) -> str:
        trigger = self.build_trigger(crontab)
        job_id = job_id_for(entity)
        self.scheduler.add_job(
            callback,
            trigger=trigger,
            id=job_id,
            args=[entity],
            replace_existing=True,
            coalesce=True,
            misfire_grace_time=60,
        )
        self.logger.info("job_scheduled", entity=entity, crontab=crontab)
        return job_id

    def schedule_every(self, job_id: str, seconds: int, callback: Callable[[], object]) -> None:
        self.scheduler.add_job(
            callback,
            trigger=IntervalTrigger(seconds=seconds, timezone=self.timezone),
            id=job_id,
            replace_existing=True,
            coalesce=True,
        )
        self.logger.info("job_scheduled", job_id=job_id, seconds=seconds)

    def remove_entity(self, entity: str) -> bool:
        try:
            self.scheduler.remove_job(job_id_for(entity))
        except JobLookupError:
            self.logger.warning("job_remove_failed", entity=entity)
            return False
        self.logger.info("job_removed", entity=entity)
        return True

    def build_trigger(self, crontab: str) -> CronTrigger:
        return CronTrigger.from_crontab(crontab, timezone=self.timezone)


__all__ = [
    "APSchedulerAdapter",
    "DEFAULT_INTERVAL",
    "INTERVAL_CRONTABS",
    "interval_to_crontab",
    "job_id_for",
]
