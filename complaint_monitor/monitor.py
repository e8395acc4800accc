"""Job registry owning one recurring fetch-and-persist job per company."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass
from threading import Lock
from typing import Any

from .engine import ComplaintScraper, ComplaintStore, MonitorLedger, ThreadPoolManager
from .errors import MonitorError
from .logging_conf import configure_logging, entity_logger
from .models import ActiveJob
from .scheduler import APSchedulerAdapter, interval_to_crontab

LEDGER_SYNC_JOB_ID = "ledger::sync"


@dataclass(slots=True)
class CycleResult:
    """Outcome of one fetch → parse → persist run for an entity."""

    entity: str
    status: str
    fetched: int = 0
    inserted: int = 0
    duplicate: int = 0
    error: str | None = None


class JobRegistry:
    """Single owner of the in-memory job table.

    ``start``, ``stop``, ``stop_all`` and ``reconcile`` are the only ways the
    table changes; all of them hold ``_lock``. Fetch cycles run on the worker
    pool and never raise: a failed cycle is logged and the schedule keeps
    firing.
    """

    def __init__(
        self,
        scraper: ComplaintScraper,
        store: ComplaintStore,
        ledger: MonitorLedger,
        scheduler: APSchedulerAdapter,
        thread_pool: ThreadPoolManager,
        skip_overlapping_cycles: bool = True,
    ) -> None:
        self.scraper = scraper
        self.store = store
        self.ledger = ledger
        self.scheduler = scheduler
        self.thread_pool = thread_pool
        self.skip_overlapping_cycles = skip_overlapping_cycles
        self.logger = configure_logging().bind(component="registry")
        self._jobs: dict[str, ActiveJob] = {}
        self._lock = Lock()
        self._in_flight: set[str] = set()
        self._flight_lock = Lock()

    # ------------------------------------------------------------------
    def start(self, entity: str, interval: str) -> ActiveJob:
        """Record desired state in the ledger, then (re)install the job.

        A ledger failure propagates before anything is scheduled.
        """

        self.ledger.save(entity, interval)
        return self._install(entity, interval)

    def stop(self, entity: str) -> bool:
        with self._lock:
            stopped = self._cancel_locked(entity)
        if stopped:
            self.logger.info("monitoring_stopped", entity=entity)
        else:
            self.logger.info("monitoring_not_running", entity=entity)
        return stopped

    def stop_all(self) -> int:
        with self._lock:
            entities = list(self._jobs)
            for entity in entities:
                self._cancel_locked(entity)
        self.logger.info("monitoring_drained", count=len(entities))
        return len(entities)

    def list(self) -> list[ActiveJob]:
        with self._lock:
            return sorted(self._jobs.values(), key=lambda job: job.entity)

    def get(self, entity: str) -> ActiveJob | None:
        with self._lock:
            return self._jobs.get(entity)

    def status(self, entity: str) -> dict[str, Any]:
        job = self.get(entity)
        if job is None:
            return {"entity": entity, "active": False}
        return job.to_dict()

    def reconcile(self) -> dict[str, list[str]]:
        """Make running jobs match the active ledger rows."""

        desired = {config.entity: config.interval for config in self.ledger.list(active_only=True)}
        with self._lock:
            running = {entity: job.interval for entity, job in self._jobs.items()}
        started: list[str] = []
        stopped: list[str] = []
        for entity in running:
            if entity not in desired and self.stop(entity):
                stopped.append(entity)
        for entity, interval in desired.items():
            if running.get(entity) != interval:
                self._install(entity, interval)
                started.append(entity)
        if started or stopped:
            self.logger.info("ledger_reconciled", started=started, stopped=stopped)
        return {"started": started, "stopped": stopped}

    def schedule_ledger_sync(self, seconds: int) -> None:
        self.scheduler.schedule_every(LEDGER_SYNC_JOB_ID, seconds, self._safe_reconcile)

    # ------------------------------------------------------------------
    def submit_cycle(self, entity: str) -> Future:
        return self.thread_pool.submit(self.run_cycle, entity)

    def run_cycle(self, entity: str) -> CycleResult:
        log = entity_logger(entity)
        if self.skip_overlapping_cycles:
            with self._flight_lock:
                if entity in self._in_flight:
                    log.warning("cycle_skipped_in_flight")
                    return CycleResult(entity=entity, status="skipped")
                self._in_flight.add(entity)
        try:
            return self._run_cycle(entity, log)
        finally:
            if self.skip_overlapping_cycles:
                with self._flight_lock:
                    self._in_flight.discard(entity)

    def _run_cycle(self, entity: str, log) -> CycleResult:
        log.info("cycle_started")
        try:
            records = self.scraper.fetch(entity)
            if not records:
                log.info("cycle_empty")
                return CycleResult(entity=entity, status="empty")
            result = self.store.upsert_batch(records)
        except MonitorError as exc:
            log.error("cycle_failed", kind=exc.kind, error=exc.detail)
            return CycleResult(entity=entity, status="failed", error=exc.detail)
        except Exception as exc:  # noqa: BLE001
            log.exception("cycle_crashed", error=str(exc))
            return CycleResult(entity=entity, status="failed", error=str(exc))
        log.info(
            "cycle_persisted",
            fetched=len(records),
            inserted=result.inserted,
            duplicate=result.duplicate,
        )
        return CycleResult(
            entity=entity,
            status="persisted",
            fetched=len(records),
            inserted=result.inserted,
            duplicate=result.duplicate,
        )

    # ------------------------------------------------------------------
    def _install(self, entity: str, interval: str) -> ActiveJob:
        crontab = interval_to_crontab(interval)
        with self._lock:
            self._cancel_locked(entity)
            job_id = self.scheduler.schedule_entity(entity, crontab, self.submit_cycle)
            job = ActiveJob(entity=entity, interval=interval, crontab=crontab, job_id=job_id)
            self._jobs[entity] = job
        self.logger.info("monitoring_started", entity=entity, interval=interval, crontab=crontab)
        self.submit_cycle(entity)
        return job

    def _cancel_locked(self, entity: str) -> bool:
        job = self._jobs.pop(entity, None)
        if job is None:
            return False
        self.scheduler.remove_entity(entity)
        return True

    def _safe_reconcile(self) -> None:
        try:
            self.reconcile()
        except MonitorError as exc:
            self.logger.error("ledger_sync_failed", kind=exc.kind, error=exc.detail)


__all__ = ["CycleResult", "JobRegistry", "LEDGER_SYNC_JOB_ID"]
