"""SQLite storage for the persisted timer record and completed time entries."""

from __future__ import annotations

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Iterator

from .models import TimeEntry


DATETIME_FMT = "%Y-%m-%d %H:%M:%S.%f"


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS key_values (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS time_entries (
            id INTEGER PRIMARY KEY,
            work_item_id INTEGER NOT NULL,
            start_time INTEGER NOT NULL,
            end_time INTEGER NOT NULL,
            duration INTEGER NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_entries_start_time
            ON time_entries(start_time);
        """
    )


def get_value(conn: sqlite3.Connection, key: str) -> Any:
    row = conn.execute("SELECT value FROM key_values WHERE key = ?", (key,)).fetchone()
    if row is None:
        return None
    return json.loads(row["value"])


def set_value(conn: sqlite3.Connection, key: str, value: Any) -> None:
    conn.execute(
        """
        INSERT INTO key_values (key, value, updated_at) VALUES (?, ?, ?)
        ON CONFLICT(key) DO UPDATE SET
            value = excluded.value,
            updated_at = excluded.updated_at
        """,
        (key, json.dumps(value), datetime.now().strftime(DATETIME_FMT)),
    )


def delete_value(conn: sqlite3.Connection, key: str) -> None:
    conn.execute("DELETE FROM key_values WHERE key = ?", (key,))


def insert_time_entries(conn: sqlite3.Connection, entries: Iterable[TimeEntry]) -> None:
    conn.executemany(
        """
        INSERT INTO time_entries (
            work_item_id,
            start_time,
            end_time,
            duration
        ) VALUES (?, ?, ?, ?)
        """,
        [
            (entry.work_item_id, entry.start_time, entry.end_time, entry.duration)
            for entry in entries
        ],
    )


def fetch_time_entries(conn: sqlite3.Connection) -> list[TimeEntry]:
    """Return stored entries in insertion order."""
    query = (
        "SELECT work_item_id, start_time, end_time, duration FROM time_entries ORDER BY id"
    )
    return [
        TimeEntry(
            work_item_id=row["work_item_id"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            duration=row["duration"],
        )
        for row in conn.execute(query)
    ]


class SqliteKeyValueStore:
    """Key/value store on a shared connection, safe to call from worker threads."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._lock = threading.Lock()

    def get(self, key: str) -> Any:
        with self._lock:
            return get_value(self._conn, key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            set_value(self._conn, key, value)

    def delete(self, key: str) -> None:
        with self._lock:
            delete_value(self._conn, key)

    def append_entry(self, entry: TimeEntry) -> None:
        with self._lock:
            insert_time_entries(self._conn, [entry])

    def load_entries(self) -> list[TimeEntry]:
        with self._lock:
            return fetch_time_entries(self._conn)
