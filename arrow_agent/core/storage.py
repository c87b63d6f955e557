"""
De-duplication state for the agent's pollers.

Namespaces in use:
- pending_orders: backend order ids
- leader_swaps: event transaction hashes
- limit_orders: on-chain order indices

Cursors hold scan positions (the leader-swap watcher's last processed block).

The in-memory store loses everything on restart; the SQLite store keeps
it. Writes raise on database errors, never silently.

SQLite calls are synchronous and run on the event loop. Each is one short
local transaction; scans read a namespace once with `seen_keys` instead of
querying per item.
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Protocol, Set, Tuple

from ..config import Settings, settings as default_settings

SCHEMA_VERSION = 1


class SeenStore(Protocol):
    """At-most-once bookkeeping keyed by (namespace, natural id)."""

    def is_seen(self, namespace: str, key: str) -> bool: ...

    def seen_keys(self, namespace: str) -> Set[str]:
        """Every key recorded in a namespace."""
        ...

    def mark_seen(self, namespace: str, key: str) -> bool:
        """Record a key. Returns False when it was already recorded."""
        ...

    def get_cursor(self, name: str) -> Optional[int]: ...

    def set_cursor(self, name: str, value: int) -> None: ...


class MemorySeenStore:
    """Process-lifetime store."""

    def __init__(self) -> None:
        self._seen: Set[Tuple[str, str]] = set()
        self._cursors: Dict[str, int] = {}

    def is_seen(self, namespace: str, key: str) -> bool:
        return (namespace, key) in self._seen

    def seen_keys(self, namespace: str) -> Set[str]:
        return {key for ns, key in self._seen if ns == namespace}

    def mark_seen(self, namespace: str, key: str) -> bool:
        if (namespace, key) in self._seen:
            return False
        self._seen.add((namespace, key))
        return True

    def get_cursor(self, name: str) -> Optional[int]:
        return self._cursors.get(name)

    def set_cursor(self, name: str, value: int) -> None:
        self._cursors[name] = value


class SqliteSeenStore:
    """SQLite-backed store; the primary key enforces uniqueness."""

    def __init__(self, db_path: str):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def get_connection(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self):
        """Initialize database schema. Idempotent."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS metadata (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

            cursor.execute("SELECT value FROM metadata WHERE key = 'schema_version'")
            row = cursor.fetchone()
            if row:
                existing_version = int(row[0])
                if existing_version != SCHEMA_VERSION:
                    raise RuntimeError(
                        f"Schema version mismatch: expected {SCHEMA_VERSION}, got {existing_version}"
                    )
            else:
                cursor.execute(
                    "INSERT INTO metadata (key, value) VALUES ('schema_version', ?)",
                    (str(SCHEMA_VERSION),),
                )

            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS seen (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    seen_at TEXT NOT NULL,
                    PRIMARY KEY (namespace, key)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS cursors (
                    name TEXT PRIMARY KEY,
                    value INTEGER NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def is_seen(self, namespace: str, key: str) -> bool:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM seen WHERE namespace = ? AND key = ?",
                (namespace, key),
            ).fetchone()
        return row is not None

    def seen_keys(self, namespace: str) -> Set[str]:
        with self.get_connection() as conn:
            rows = conn.execute("SELECT key FROM seen WHERE namespace = ?", (namespace,)).fetchall()
        return {row[0] for row in rows}

    def mark_seen(self, namespace: str, key: str) -> bool:
        with self.get_connection() as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO seen (namespace, key, seen_at) VALUES (?, ?, ?)",
                (namespace, key, datetime.now(timezone.utc).isoformat()),
            )
            return cursor.rowcount == 1

    def get_cursor(self, name: str) -> Optional[int]:
        with self.get_connection() as conn:
            row = conn.execute("SELECT value FROM cursors WHERE name = ?", (name,)).fetchone()
        return int(row[0]) if row else None

    def set_cursor(self, name: str, value: int) -> None:
        with self.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO cursors (name, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (name, value, datetime.now(timezone.utc).isoformat()),
            )


def build_seen_store(settings: Optional[Settings] = None) -> SeenStore:
    """SQLite store when `dedup_db_path` is set, otherwise in-memory."""
    s = settings or default_settings
    if s.dedup_db_path:
        return SqliteSeenStore(s.dedup_db_path)
    return MemorySeenStore()
