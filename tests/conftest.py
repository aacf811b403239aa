"""Shared fixtures: a temporary SQLite store behind an explicit ConnectionPool."""

from __future__ import annotations

import sqlite3
from functools import partial

import pytest

from db.connection import ConnectionPool
from repositories.customer_repo import CustomerRepository

CUSTOMERS_DDL = """
CREATE TABLE TblCustomers (
    CustomerId      INTEGER PRIMARY KEY AUTOINCREMENT,
    CustomerName    TEXT,
    PostalAddress   TEXT,
    Email           TEXT,
    BirthDate       TEXT
)
"""


class CountingConnect:
    """sqlite3.connect wrapper that records every connection it opens."""

    def __init__(self):
        self.opened: list[sqlite3.Connection] = []
        self._connect = partial(sqlite3.connect, check_same_thread=False)

    def __call__(self, dsn: str) -> sqlite3.Connection:
        conn = self._connect(dsn)
        self.opened.append(conn)
        return conn


@pytest.fixture
def db_path(tmp_path):
    """Create a temporary database file with the customers table."""
    path = tmp_path / "test.db"
    conn = sqlite3.connect(path)
    conn.execute(CUSTOMERS_DDL)
    conn.commit()
    conn.close()
    return str(path)


@pytest.fixture
def connect() -> CountingConnect:
    return CountingConnect()


@pytest.fixture
def pool(db_path, connect):
    pool = ConnectionPool(db_path, max_idle=2, connect=connect, placeholder="?")
    yield pool
    pool.close()


@pytest.fixture
def customers(pool) -> CustomerRepository:
    return CustomerRepository(pool=pool)


class DeadCursor:
    def __init__(self):
        self.closed = False

    def execute(self, sql, params=()):
        raise sqlite3.OperationalError("server closed the connection unexpectedly")

    def close(self):
        self.closed = True


class DeadConnection:
    """Connection whose server went away: execute, rollback and commit all fail."""

    def __init__(self, cursor_fails: bool = False):
        self.cursor_fails = cursor_fails
        self.cursor_obj = DeadCursor()

    def cursor(self):
        if self.cursor_fails:
            raise sqlite3.InterfaceError("connection already closed")
        return self.cursor_obj

    def rollback(self):
        raise sqlite3.InterfaceError("connection already closed")

    def commit(self):
        raise sqlite3.InterfaceError("connection already closed")

    def close(self):
        pass


@pytest.fixture
def dead_pool():
    """Build a pool whose every connection is the given DeadConnection."""
    def factory(conn: DeadConnection) -> ConnectionPool:
        return ConnectionPool("dead.db", max_idle=1, connect=lambda dsn: conn, placeholder="?")
    return factory
