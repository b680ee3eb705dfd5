"""Durable key-value stores backing the credential store."""

import sqlite3
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog

from tenant_api.features.credentials.errors import StoreConnectionError


logger = structlog.get_logger()

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
)
"""


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol for the durable cache behind the credential store.

    Any object with these three methods can persist credentials, whether it
    is the bundled SQLite store or an adapter over a platform keyring.
    """

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key``; absent keys are ignored."""
        ...


class SqliteKeyValueStore:
    """SQLite-backed key-value store.

    Opens the database lazily on first use and keeps a single connection.
    Uses WAL mode so a CLI process and a long-running service can share the
    same credential file.
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self._db_path = Path(db_path) if isinstance(db_path, str) else db_path
        self._conn: sqlite3.Connection | None = None
        self._log = logger.bind(
            component="credentials",
            db_path=str(self._db_path),
        )

    @property
    def db_path(self) -> Path:
        """Get the database path."""
        return self._db_path

    @property
    def is_connected(self) -> bool:
        """Check if connected to database."""
        return self._conn is not None

    def connect(self) -> None:
        """Open the database, creating the file and schema if needed.

        Raises:
            StoreConnectionError: If the database cannot be opened.
        """
        if self._conn is not None:
            return

        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self._db_path))
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute(_SCHEMA)
            conn.commit()
        except (sqlite3.Error, OSError) as exc:
            msg = f"Cannot open credential database {self._db_path}: {exc}"
            raise StoreConnectionError(msg) from exc

        self._conn = conn
        self._log.debug("credential_db_connected")

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            self._log.debug("credential_db_closed")

    def __enter__(self) -> "SqliteKeyValueStore":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.close()

    def _ensure_connected(self) -> sqlite3.Connection:
        if self._conn is None:
            self.connect()
        assert self._conn is not None  # noqa: S101
        return self._conn

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        conn = self._ensure_connected()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            msg = f"Failed to read key '{key}': {exc}"
            raise StoreConnectionError(msg) from exc
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        conn = self._ensure_connected()
        try:
            conn.execute(
                """
                INSERT INTO kv (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')
                """,
                (key, value),
            )
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            msg = f"Failed to write key '{key}': {exc}"
            raise StoreConnectionError(msg) from exc

    def delete(self, key: str) -> None:
        """Remove ``key``; absent keys are ignored."""
        conn = self._ensure_connected()
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            msg = f"Failed to delete key '{key}': {exc}"
            raise StoreConnectionError(msg) from exc
