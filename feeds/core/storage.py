from __future__ import annotations

import os
import sqlite3
import threading
from dataclasses import dataclass, field
from typing import Protocol

from feeds.core.settings import Settings


class KeyValueStore(Protocol):
    """String key-value storage used for read state and sync snapshots."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


SCHEMA_SQL = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS kv_store (
  namespace TEXT NOT NULL,
  key TEXT NOT NULL,
  value TEXT NOT NULL,
  updated_at TEXT NOT NULL DEFAULT (datetime('now')),
  PRIMARY KEY (namespace, key)
);
"""


@dataclass
class SQLiteKeyValueStore:
    """Key-value store backed by one namespace of the kv_store table."""

    conn: sqlite3.Connection
    namespace: str = "feeds-state"
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def init(self) -> None:
        self.conn.executescript(SCHEMA_SQL)
        self.conn.commit()

    def get(self, key: str) -> str | None:
        with self._lock:
            cur = self.conn.execute(
                "SELECT value FROM kv_store WHERE namespace = ? AND key = ?",
                (self.namespace, key),
            )
            row = cur.fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self.conn.execute(
                """
                INSERT INTO kv_store (namespace, key, value, updated_at)
                VALUES (?, ?, ?, datetime('now'))
                ON CONFLICT(namespace, key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (self.namespace, key, value),
            )
            self.conn.commit()

    def delete(self, key: str) -> None:
        with self._lock:
            self.conn.execute(
                "DELETE FROM kv_store WHERE namespace = ? AND key = ?",
                (self.namespace, key),
            )
            self.conn.commit()


@dataclass
class MemoryKeyValueStore:
    """In-process store, mainly for tests and single-run tools."""

    data: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


_store: SQLiteKeyValueStore | None = None


def init_store() -> None:
    global _store
    s = Settings.from_env()
    db_dir = os.path.dirname(s.db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    conn = sqlite3.connect(s.db_path, check_same_thread=False)
    _store = SQLiteKeyValueStore(conn=conn)
    _store.init()


def get_store() -> SQLiteKeyValueStore:
    assert _store is not None, "Store not initialized"
    return _store
