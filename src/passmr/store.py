"""Key-value entry storage backed by SQLite.

The ``Store`` protocol is the only thing the application core talks to.
``SqliteStore`` keeps every entry in a single ``entries`` table and commits
each mutation immediately, so reads always observe the latest write.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS entries (
    key TEXT PRIMARY KEY,
    value BLOB NOT NULL
);
"""


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class StoreError(Exception):
    """Base class for storage failures."""


class StorageOpenError(StoreError):
    """The store could not be opened or created."""


class StorageIOError(StoreError):
    """A read or write against an open store failed."""


class ValueDecodeError(StoreError):
    """The bytes stored for a key are not valid UTF-8."""

    def __init__(self, key: str, cause: UnicodeDecodeError) -> None:
        super().__init__(f"Value for '{key}' is not valid UTF-8: {cause.reason}")
        self.key = key


# ---------------------------------------------------------------------------
# Store protocol
# ---------------------------------------------------------------------------


class Store(Protocol):
    """Synchronous key-value store interface."""

    def insert(self, key: str, value: str) -> None:
        """Insert or overwrite *key*."""
        ...

    def get(self, key: str) -> str | None:
        """Return the value for *key*, or ``None`` if absent."""
        ...

    def delete(self, key: str) -> None:
        """Remove *key*. Absent keys are ignored."""
        ...

    def list_keys(self) -> list[str]:
        """Return every key in lexicographic order."""
        ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# SQLite implementation
# ---------------------------------------------------------------------------


class SqliteStore:
    """Store implementation on a single SQLite file.

    Use :func:`open_store` to get startup failures as ``StorageOpenError``.
    """

    def __init__(self, path: str) -> None:
        self._path = path
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._conn: sqlite3.Connection | None = sqlite3.connect(path)
        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

    @property
    def path(self) -> str:
        return self._path

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Store is closed")
        return self._conn

    def insert(self, key: str, value: str) -> None:
        try:
            self.conn.execute(
                """INSERT INTO entries (key, value) VALUES (?, ?)
                   ON CONFLICT(key) DO UPDATE SET value=excluded.value""",
                (key, value.encode("utf-8")),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            raise StorageIOError(f"Failed to write '{key}': {e}") from e
        logger.debug("Stored entry %r", key)

    def get(self, key: str) -> str | None:
        try:
            row = self.conn.execute(
                "SELECT value FROM entries WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageIOError(f"Failed to read '{key}': {e}") from e
        if row is None:
            return None
        raw = row[0]
        if isinstance(raw, str):
            return raw
        try:
            return bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValueDecodeError(key, e) from e

    def delete(self, key: str) -> None:
        try:
            self.conn.execute("DELETE FROM entries WHERE key = ?", (key,))
            self.conn.commit()
        except sqlite3.Error as e:
            raise StorageIOError(f"Failed to delete '{key}': {e}") from e
        logger.debug("Deleted entry %r", key)

    def list_keys(self) -> list[str]:
        try:
            rows = self.conn.execute(
                "SELECT key FROM entries ORDER BY key"
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageIOError(f"Failed to list keys: {e}") from e
        return [row[0] for row in rows]

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


def open_store(path: str) -> SqliteStore:
    """Open (creating if needed) the store at *path*."""
    try:
        store = SqliteStore(path)
    except (OSError, sqlite3.Error) as e:
        raise StorageOpenError(f"Cannot open store at {path}: {e}") from e
    logger.info("Opened store at %s", path)
    return store
