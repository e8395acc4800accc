"""Deduplicating complaint store on top of SQLite."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Iterable

import structlog

from ..errors import InvalidArgument, StorageUnavailable
from ..infra.storage import SQLiteManager
from ..models import ComplaintFilters, ComplaintRecord, UpsertResult, isoformat, utc_now

DEFAULT_LIMIT = 50

_INSERT = """
    INSERT OR IGNORE INTO complaints
        (external_id, entity, title, description, status, occurred_at, location, link, collected_at)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class ComplaintStore:
    """Persist complaint records keyed by ``(external_id, entity)``.

    Known keys are counted as duplicates and never overwritten. SQLite treats
    NULL ids as distinct, so records without an upstream id always insert.
    Each record commits on its own: when the database fails mid-batch the
    earlier inserts stay and :class:`StorageUnavailable` is raised.
    """

    def __init__(self, manager: SQLiteManager, db_path: Path) -> None:
        self.manager = manager
        self.db_path = db_path
        self.logger = structlog.get_logger("complaint_monitor.store")
        self._lock = manager.lock_for(db_path)
        self._conn = manager.connect(db_path)

    def upsert_batch(self, records: Iterable[ComplaintRecord]) -> UpsertResult:
        result = UpsertResult()
        with self._lock:
            for record in records:
                try:
                    with self._conn:
                        cursor = self._conn.execute(_INSERT, self._row(record))
                except sqlite3.Error as exc:
                    self.logger.error(
                        "upsert_failed",
                        entity=record.entity,
                        external_id=record.external_id,
                        inserted=result.inserted,
                        duplicate=result.duplicate,
                        error=str(exc),
                    )
                    raise StorageUnavailable(f"Failed to store complaint: {exc}") from exc
                if cursor.rowcount == 1:
                    result.inserted += 1
                else:
                    result.duplicate += 1
        self.logger.debug("upsert_batch", inserted=result.inserted, duplicate=result.duplicate)
        return result

    def query_by_entity(self, entity: str, limit: int = DEFAULT_LIMIT) -> list[ComplaintRecord]:
        return self.query_all(ComplaintFilters(entity=entity, limit=limit))

    def query_all(self, filters: ComplaintFilters | None = None) -> list[ComplaintRecord]:
        filters = filters or ComplaintFilters()
        clauses: list[str] = []
        params: list[Any] = []
        if filters.entity:
            clauses.append("entity = ?")
            params.append(filters.entity)
        if filters.status:
            clauses.append("status = ?")
            params.append(filters.status)
        if filters.since:
            clauses.append("collected_at >= ?")
            params.append(isoformat(filters.since))
        if filters.until:
            clauses.append("collected_at <= ?")
            params.append(isoformat(filters.until))
        query = "SELECT * FROM complaints"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY collected_at DESC, id DESC"
        if filters.limit is not None:
            if filters.limit < 0:
                raise InvalidArgument("limit must be >= 0")
            query += " LIMIT ?"
            params.append(filters.limit)
        rows = self._fetchall(query, params)
        return [self._record(row) for row in rows]

    def purge_older_than(self, days: int) -> int:
        if days < 0:
            raise InvalidArgument("days must be >= 0")
        cutoff = isoformat(utc_now() - timedelta(days=days))
        with self._lock:
            try:
                with self._conn:
                    cursor = self._conn.execute(
                        "DELETE FROM complaints WHERE collected_at < ?", (cutoff,)
                    )
            except sqlite3.Error as exc:
                raise StorageUnavailable(f"Failed to purge complaints: {exc}") from exc
        removed = cursor.rowcount
        self.logger.info("complaints_purged", removed=removed, older_than_days=days)
        return removed

    def stats(self, entity: str | None = None) -> dict[str, Any]:
        if entity:
            query = """
                SELECT COUNT(*) AS total,
                       COUNT(DISTINCT status) AS distinct_statuses,
                       MIN(collected_at) AS first_collected,
                       MAX(collected_at) AS last_collected
                FROM complaints WHERE entity = ?
            """
            rows = self._fetchall(query, [entity])
        else:
            query = """
                SELECT COUNT(*) AS total,
                       COUNT(DISTINCT entity) AS distinct_entities,
                       COUNT(DISTINCT status) AS distinct_statuses,
                       MIN(collected_at) AS first_collected,
                       MAX(collected_at) AS last_collected
                FROM complaints
            """
            rows = self._fetchall(query, [])
        return dict(rows[0])

    # ------------------------------------------------------------------
    def _fetchall(self, query: str, params: list[Any]) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self._conn.execute(query, params).fetchall()
            except sqlite3.Error as exc:
                raise StorageUnavailable(f"Failed to query complaints: {exc}") from exc

    @staticmethod
    def _row(record: ComplaintRecord) -> tuple:
        return (
            record.external_id,
            record.entity,
            record.title,
            record.description,
            record.status,
            record.occurred_at,
            record.location,
            record.link,
            isoformat(record.collected_at),
        )

    @staticmethod
    def _record(row: sqlite3.Row) -> ComplaintRecord:
        return ComplaintRecord(
            entity=row["entity"],
            title=row["title"],
            external_id=row["external_id"],
            description=row["description"],
            status=row["status"],
            occurred_at=row["occurred_at"],
            location=row["location"],
            link=row["link"],
            collected_at=datetime.fromisoformat(row["collected_at"]),
        )


__all__ = ["ComplaintStore", "DEFAULT_LIMIT"]
