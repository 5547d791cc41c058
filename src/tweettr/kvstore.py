"""Key/value persistence shared by history, samples, prompts and credentials.

Keys are opaque strings and values are serialized documents; callers own the
encoding.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

# ── Well-known keys ────────────────────────────────────────────────────────
HISTORY_KEY = "tweettr.history"
SAMPLES_KEY = "tweettr.samples"
SAVED_PROMPTS_KEY = "tweettr.savedSystemPrompts"
LAST_PROVIDER_KEY = "tweettr.lastProvider"


def api_key_key(provider: str) -> str:
    return f"tweettr.apiKey.{provider}"


_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class SQLiteKeyValueStore:
    """Single-table key/value store backed by SQLite."""

    def __init__(self, db_path: Path) -> None:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db_path = db_path
        self._init_db()

    # ── public ──────────────────────────────────────────────────────────

    def get(self, key: str) -> str | None:
        con = self._connect()
        try:
            row = con.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        finally:
            con.close()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        con = self._connect()
        try:
            con.execute(
                """
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE
                    SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, datetime.now(UTC).isoformat()),
            )
            con.commit()
        finally:
            con.close()

    def remove(self, key: str) -> None:
        con = self._connect()
        try:
            con.execute("DELETE FROM kv WHERE key = ?", (key,))
            con.commit()
        finally:
            con.close()

    def keys(self) -> list[str]:
        con = self._connect()
        try:
            cur = con.execute("SELECT key FROM kv ORDER BY key")
            return [row[0] for row in cur.fetchall()]
        finally:
            con.close()

    # ── private ─────────────────────────────────────────────────────────

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._db_path))

    def _init_db(self) -> None:
        con = self._connect()
        con.executescript(_SCHEMA)
        con.close()
        logger.debug("Key/value store ready at %s", self._db_path)
