"""Command surface consumed by the CLI and any network API in front of it."""

from __future__ import annotations

from typing import Any

from .engine import ComplaintScraper, ComplaintStore, MonitorLedger
from .errors import InvalidArgument
from .models import ComplaintFilters, ComplaintRecord
from .monitor import JobRegistry


def _require(value: str | None, name: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgument(f"{name} is required")
    return str(value).strip()


class MonitorService:
    """Validate caller input and route commands to registry, ledger and store.

    The ledger is the source of truth for what should be monitored:
    ``list_monitoring`` reads it, ``stop_monitoring`` deactivates the row as
    well as the running job, and :meth:`JobRegistry.reconcile` brings the
    in-memory jobs back in line after a restart.
    """

    def __init__(
        self,
        registry: JobRegistry,
        store: ComplaintStore,
        ledger: MonitorLedger,
        scraper: ComplaintScraper,
        default_limit: int = 50,
        purge_days: int = 30,
    ) -> None:
        self.registry = registry
        self.store = store
        self.ledger = ledger
        self.scraper = scraper
        self.default_limit = default_limit
        self.purge_days = purge_days

    def start_monitoring(self, entity: str | None, interval: str | None) -> dict[str, Any]:
        entity = _require(entity, "entity")
        interval = _require(interval, "interval")
        job = self.registry.start(entity, interval)
        return {"entity": job.entity, "interval": job.interval}

    def stop_monitoring(self, entity: str | None) -> dict[str, Any]:
        entity = _require(entity, "entity")
        self.ledger.deactivate(entity)
        stopped = self.registry.stop(entity)
        return {"entity": entity, "stopped": stopped}

    def list_monitoring(self, include_inactive: bool = False) -> list[dict[str, Any]]:
        return [config.to_dict() for config in self.ledger.list(active_only=not include_inactive)]

    def monitoring_status(self, entity: str | None) -> dict[str, Any]:
        entity = _require(entity, "entity")
        config = self.ledger.get(entity)
        status = self.registry.status(entity)
        return {
            "entity": entity,
            "interval": config.interval if config else None,
            "configured": bool(config and config.active),
            "running": status["active"],
            "started_at": status.get("started_at"),
        }

    def get_stored_complaints(self, entity: str | None, limit: int | None = None) -> list[ComplaintRecord]:
        entity = _require(entity, "entity")
        return self.store.query_by_entity(entity, self._limit(limit))

    def query_complaints(self, filters: ComplaintFilters) -> list[ComplaintRecord]:
        if filters.limit is not None:
            self._limit(filters.limit)
        if filters.since and filters.until and filters.until < filters.since:
            raise InvalidArgument("until must not be earlier than since")
        return self.store.query_all(filters)

    def fetch_now(self, entity: str | None, search: bool = False) -> list[ComplaintRecord]:
        entity = _require(entity, "entity")
        if search:
            return self.scraper.search(entity)
        return self.scraper.fetch(entity)

    def statistics(self, entity: str | None = None) -> dict[str, Any]:
        return self.store.stats(entity.strip() if entity else None)

    def purge(self, days: int | None = None) -> int:
        days = self.purge_days if days is None else days
        if days < 0:
            raise InvalidArgument("days must be >= 0")
        return self.store.purge_older_than(days)

    def _limit(self, limit: int | None) -> int:
        if limit is None:
            return self.default_limit
        if limit < 1:
            raise InvalidArgument("limit must be a positive integer")
        return limit


__all__ = ["MonitorService"]
