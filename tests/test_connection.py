"""Tests for the connection pool."""

import sqlite3
import threading

import pytest

import config
from db import connection
from db.connection import ConnectionPool, close_pool, get_pool, init_pool
from db.errors import ConfigurationError, DatabaseConnectionError


def _is_closed(conn: sqlite3.Connection) -> bool:
    try:
        conn.execute("SELECT 1")
    except sqlite3.ProgrammingError:
        return True
    return False


class TestConnectionPool:
    def test_shared_reuses_idle_connection(self, pool, connect):
        first = pool.acquire_shared()
        pool.release(first)
        second = pool.acquire_shared()
        assert second is first
        assert len(connect.opened) == 1
        pool.release(second)

    def test_shared_opens_when_idle_set_empty(self, pool, connect):
        a = pool.acquire_shared()
        b = pool.acquire_shared()
        assert a is not b
        assert len(connect.opened) == 2
        pool.release(a)
        pool.release(b)

    def test_outstanding_connections_are_not_capped(self, pool, connect):
        conns = [pool.acquire_shared() for _ in range(5)]
        assert len(connect.opened) == 5
        for conn in conns:
            pool.release(conn)

    def test_dedicated_always_opens(self, pool, connect):
        pool.release(pool.acquire_shared())
        assert pool.idle_count == 1
        dedicated = pool.acquire_dedicated()
        assert dedicated is not connect.opened[0]
        assert pool.idle_count == 1
        pool.release(dedicated)
        assert pool.idle_count == 2

    def test_release_beyond_capacity_closes_excess(self, pool, connect):
        conns = [pool.acquire_dedicated() for _ in range(4)]
        for conn in conns:
            pool.release(conn)
        assert pool.idle_count == pool.max_idle == 2
        assert [_is_closed(c) for c in conns] == [False, False, True, True]

    def test_release_rolls_back_open_transaction(self, pool, db_path):
        conn = pool.acquire_shared()
        conn.execute("INSERT INTO TblCustomers (CustomerName) VALUES ('pending')")
        pool.release(conn)

        check = sqlite3.connect(db_path)
        try:
            assert check.execute("SELECT COUNT(*) FROM TblCustomers").fetchone()[0] == 0
        finally:
            check.close()

    def test_broken_connection_is_discarded(self, pool):
        conn = pool.acquire_shared()
        conn.close()
        pool.release(conn)
        assert pool.idle_count == 0

    def test_context_manager_releases_on_error(self, pool):
        with pytest.raises(RuntimeError):
            with pool.shared():
                raise RuntimeError("boom")
        assert pool.idle_count == 1

    def test_zero_capacity_keeps_nothing(self, db_path, connect):
        pool = ConnectionPool(db_path, max_idle=0, connect=connect, placeholder="?")
        conn = pool.acquire_shared()
        pool.release(conn)
        assert pool.idle_count == 0
        assert _is_closed(conn)

    def test_close_closes_idle(self, pool):
        conn = pool.acquire_shared()
        pool.release(conn)
        pool.close()
        assert pool.idle_count == 0
        assert _is_closed(conn)

    def test_open_failure_raises_connection_error(self, tmp_path):
        def refuse(dsn):
            raise sqlite3.OperationalError("unable to open database file")

        pool = ConnectionPool(str(tmp_path / "x.db"), max_idle=1, connect=refuse, placeholder="?")
        with pytest.raises(DatabaseConnectionError) as exc_info:
            pool.acquire_shared()
        assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)

    def test_empty_dsn_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            ConnectionPool("", max_idle=1)

    def test_default_capacity_from_config(self, db_path, monkeypatch):
        monkeypatch.setattr(config, "DB_POOL_SIZE", 7)
        assert ConnectionPool(db_path, connect=sqlite3.connect).max_idle == 7

    def test_concurrent_release_respects_capacity(self, pool):
        conns = [pool.acquire_dedicated() for _ in range(16)]
        threads = [threading.Thread(target=pool.release, args=(c,)) for c in conns]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert pool.idle_count == 2
        assert sum(not _is_closed(c) for c in conns) == 2


class TestGlobalPool:
    @pytest.fixture(autouse=True)
    def _reset(self, monkeypatch):
        monkeypatch.setattr(connection, "_pool", None)
        yield
        close_pool()

    def test_missing_connection_string(self, monkeypatch):
        monkeypatch.setattr(config, "DB_CONNECTION_STRING", "")
        with pytest.raises(ConfigurationError, match="DB_CONNECTION_STRING"):
            get_pool()

    def test_created_once(self, monkeypatch):
        monkeypatch.setattr(config, "DB_CONNECTION_STRING", "dbname=test")
        monkeypatch.setattr(config, "DB_POOL_SIZE", 3)
        pool = get_pool()
        assert pool is get_pool()
        assert pool is init_pool("dbname=other")
        assert pool.dsn == "dbname=test"
        assert pool.max_idle == 3
        assert pool.placeholder == "%s"

    def test_close_pool_forgets_instance(self, monkeypatch):
        monkeypatch.setattr(config, "DB_CONNECTION_STRING", "dbname=test")
        first = get_pool()
        close_pool()
        assert get_pool() is not first
