"""SQLite connection management and schema for complaints and the ledger."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock
from typing import Dict

from ..errors import StorageUnavailable

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS complaints (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        external_id TEXT,
        entity TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        status TEXT,
        occurred_at TEXT,
        location TEXT,
        link TEXT,
        collected_at TEXT NOT NULL,
        UNIQUE(external_id, entity)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS monitor_configs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        entity TEXT NOT NULL UNIQUE,
        interval TEXT NOT NULL,
        active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_complaints_entity ON complaints(entity)",
    "CREATE INDEX IF NOT EXISTS idx_complaints_collected ON complaints(collected_at DESC)",
)


class SQLiteManager:
    """Manage SQLite connections with basic schema guarantees.

    Connections are shared across threads, so every statement sequence that
    must not interleave is run under :meth:`lock_for`.
    """

    def __init__(self) -> None:
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._locks: Dict[Path, Lock] = {}
        self._lock = Lock()

    def connect(self, path: Path) -> sqlite3.Connection:
        with self._lock:
            if path not in self._connections:
                try:
                    path.parent.mkdir(parents=True, exist_ok=True)
                    conn = sqlite3.connect(path, check_same_thread=False)
                    conn.row_factory = sqlite3.Row
                    self._ensure_schema(conn)
                except (OSError, sqlite3.Error) as exc:
                    raise StorageUnavailable(f"Cannot open database {path}: {exc}") from exc
                self._connections[path] = conn
                self._locks.setdefault(path, Lock())
            return self._connections[path]

    def lock_for(self, path: Path) -> Lock:
        with self._lock:
            return self._locks.setdefault(path, Lock())

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        for statement in SCHEMA:
            conn.execute(statement)
        conn.commit()

    def close_all(self) -> None:
        with self._lock:
            for conn in self._connections.values():
                conn.close()
            self._connections.clear()


__all__ = ["SCHEMA", "SQLiteManager"]
