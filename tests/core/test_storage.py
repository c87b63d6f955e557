"""
Tests for de-duplication stores.
"""

import sqlite3

import pytest

from arrow_agent.config import Settings
from arrow_agent.core.storage import (
    MemorySeenStore,
    SqliteSeenStore,
    build_seen_store,
)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemorySeenStore()
    return SqliteSeenStore(str(tmp_path / "seen.db"))


class TestSeenStore:
    def test_mark_seen_once(self, store):
        assert store.is_seen("pending_orders", "abc") is False
        assert store.mark_seen("pending_orders", "abc") is True
        assert store.mark_seen("pending_orders", "abc") is False
        assert store.is_seen("pending_orders", "abc") is True

    def test_namespaces_are_independent(self, store):
        store.mark_seen("limit_orders", "1")
        assert store.is_seen("pending_orders", "1") is False

    def test_seen_keys_reads_one_namespace(self, store):
        store.mark_seen("limit_orders", "0")
        store.mark_seen("limit_orders", "2")
        store.mark_seen("pending_orders", "order-1")

        assert store.seen_keys("limit_orders") == {"0", "2"}
        assert store.seen_keys("leader_swaps") == set()

    def test_cursor_round_trip(self, store):
        assert store.get_cursor("leader_swaps.last_block") is None
        store.set_cursor("leader_swaps.last_block", 100)
        store.set_cursor("leader_swaps.last_block", 120)
        assert store.get_cursor("leader_swaps.last_block") == 120


class TestSqliteSeenStore:
    def test_survives_reopen(self, tmp_path):
        path = str(tmp_path / "nested" / "seen.db")
        SqliteSeenStore(path).mark_seen("leader_swaps", "0xabc")
        SqliteSeenStore(path).set_cursor("leader_swaps.last_block", 7)

        reopened = SqliteSeenStore(path)
        assert reopened.is_seen("leader_swaps", "0xabc")
        assert reopened.get_cursor("leader_swaps.last_block") == 7

    def test_rejects_other_schema_version(self, tmp_path):
        path = tmp_path / "seen.db"
        SqliteSeenStore(str(path))
        conn = sqlite3.connect(path)
        conn.execute("UPDATE metadata SET value = '99' WHERE key = 'schema_version'")
        conn.commit()
        conn.close()

        with pytest.raises(RuntimeError, match="Schema version mismatch"):
            SqliteSeenStore(str(path))


class TestBuildSeenStore:
    def test_memory_by_default(self):
        assert isinstance(build_seen_store(Settings(dedup_db_path="")), MemorySeenStore)

    def test_sqlite_when_path_set(self, tmp_path):
        store = build_seen_store(Settings(dedup_db_path=str(tmp_path / "seen.db")))
        assert isinstance(store, SqliteSeenStore)
