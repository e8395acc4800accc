"""Durable record of which companies should be monitored, and how often."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

import structlog

from ..errors import StorageUnavailable
from ..infra.storage import SQLiteManager
from ..models import MonitorConfig, isoformat, utc_now


class MonitorLedger:
    """Desired monitoring state, independent of the jobs currently running."""

    def __init__(self, manager: SQLiteManager, db_path: Path) -> None:
        self.manager = manager
        self.db_path = db_path
        self.logger = structlog.get_logger("complaint_monitor.ledger")
        self._lock = manager.lock_for(db_path)
        self._conn = manager.connect(db_path)

    def save(self, entity: str, interval: str) -> MonitorConfig:
        """Insert or overwrite the row for ``entity`` and mark it active."""

        now = isoformat(utc_now())
        self._write(
            """
            INSERT INTO monitor_configs (entity, interval, active, created_at, updated_at)
            VALUES (?, ?, 1, ?, ?)
            ON CONFLICT(entity) DO UPDATE SET
                interval = excluded.interval,
                active = 1,
                updated_at = excluded.updated_at
            """,
            (entity, interval, now, now),
        )
        self.logger.info("ledger_saved", entity=entity, interval=interval)
        config = self.get(entity)
        if config is None:
            raise StorageUnavailable(f"Ledger row for {entity} missing after write")
        return config

    def deactivate(self, entity: str) -> bool:
        changed = self._write(
            "UPDATE monitor_configs SET active = 0, updated_at = ? WHERE entity = ? AND active = 1",
            (isoformat(utc_now()), entity),
        )
        if changed:
            self.logger.info("ledger_deactivated", entity=entity)
        return bool(changed)

    def get(self, entity: str) -> MonitorConfig | None:
        rows = self._read("SELECT * FROM monitor_configs WHERE entity = ?", (entity,))
        return self._config(rows[0]) if rows else None

    def list(self, active_only: bool = True) -> list[MonitorConfig]:
        query = "SELECT * FROM monitor_configs"
        if active_only:
            query += " WHERE active = 1"
        query += " ORDER BY created_at DESC, id DESC"
        return [self._config(row) for row in self._read(query, ())]

    # ------------------------------------------------------------------
    def _write(self, query: str, params: tuple) -> int:
        with self._lock:
            try:
                with self._conn:
                    return self._conn.execute(query, params).rowcount
            except sqlite3.Error as exc:
                raise StorageUnavailable(f"Failed to update monitoring ledger: {exc}") from exc

    def _read(self, query: str, params: tuple) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self._conn.execute(query, params).fetchall()
            except sqlite3.Error as exc:
                raise StorageUnavailable(f"Failed to read monitoring ledger: {exc}") from exc

    @staticmethod
    def _config(row: sqlite3.Row) -> MonitorConfig:
        return MonitorConfig(
            entity=row["entity"],
            interval=row["interval"],
            active=bool(row["active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


__all__ = ["MonitorLedger"]
