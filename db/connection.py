"""
db/connection.py
----------------
Manages the database connection pool.

The pool keeps at most `max_idle` idle connections. It never caps how many
connections are outstanding at once: when the idle set is empty a new
connection is simply opened. Every idle-set mutation happens under a single
lock and no I/O (open, reset, close) is performed while holding it.

Connections come from any DB-API 2.0 `connect` callable; psycopg2 is the
default driver.
"""

import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

import psycopg2

import config
from db.errors import ConfigurationError, DatabaseConnectionError
from utils.logger import get_logger

logger = get_logger(__name__)


class ConnectionPool:
    """
    Bounded set of idle connections to a single store.

    Args:
        dsn: Connection string passed to `connect`.
        max_idle: Maximum number of idle connections retained.
            Defaults to the number of available CPUs.
        connect: Driver connect function, called as ``connect(dsn)``.
        placeholder: Parameter marker understood by the driver
            (``"%s"`` for psycopg2, ``"?"`` for sqlite3).
    """

    def __init__(
        self,
        dsn: str,
        max_idle: Optional[int] = None,
        connect: Callable[[str], Any] = psycopg2.connect,
        placeholder: str = "%s",
    ):
        if not dsn:
            raise ConfigurationError("A connection string is required to build a pool.")
        if max_idle is None:
            max_idle = config.DB_POOL_SIZE
        if max_idle < 0:
            raise ValueError(f"max_idle must be >= 0, got {max_idle}")
        self.dsn = dsn
        self.max_idle = max_idle
        self.placeholder = placeholder
        self._connect = connect
        self._idle: list = []
        self._lock = threading.Lock()

    @property
    def idle_count(self) -> int:
        with self._lock:
            return len(self._idle)

    def _open(self):
        try:
            conn = self._connect(self.dsn)
        except Exception as e:
            logger.error(f"Failed to open database connection: {e}")
            raise DatabaseConnectionError(f"Could not connect to the database: {e}") from e
        logger.debug("Opened new database connection.")
        return conn

    def acquire_shared(self):
        """
        Take an idle connection, or open a new one if none is idle.

        Raises:
            DatabaseConnectionError: If a new connection cannot be opened.
        """
        with self._lock:
            conn = self._idle.pop() if self._idle else None
        if conn is not None:
            return conn
        return self._open()

    def acquire_dedicated(self):
        """
        Open a brand-new connection, bypassing the idle set.

        The connection is still returned through `release`.
        """
        return self._open()

    def release(self, conn) -> None:
        """
        Return a connection to the idle set, or close it if the set is full.

        Any implicit transaction left open by the borrower is rolled back
        first; a connection that cannot be reset is discarded.
        """
        try:
            conn.rollback()
        except Exception as e:
            logger.warning(f"Discarding connection that failed to reset: {e}")
            self._close(conn)
            return

        with self._lock:
            if len(self._idle) < self.max_idle:
                self._idle.append(conn)
                return
        self._close(conn)

    @staticmethod
    def _close(conn) -> None:
        try:
            conn.close()
        except Exception as e:
            logger.warning(f"Error while closing connection: {e}")

    @contextmanager
    def shared(self) -> Iterator[Any]:
        """Borrow a pooled connection for the duration of the block."""
        conn = self.acquire_shared()
        try:
            yield conn
        finally:
            self.release(conn)

    @contextmanager
    def dedicated(self) -> Iterator[Any]:
        """Borrow a freshly opened connection for the duration of the block."""
        conn = self.acquire_dedicated()
        try:
            yield conn
        finally:
            self.release(conn)

    def close(self) -> None:
        """Close all idle connections. Outstanding connections are unaffected."""
        with self._lock:
            idle, self._idle = self._idle, []
        for conn in idle:
            self._close(conn)
        logger.info(f"Closed {len(idle)} idle database connection(s).")


# ── Process-wide pool ─────────────────────────────────────

_pool: Optional[ConnectionPool] = None
_pool_lock = threading.Lock()


def init_pool(dsn: Optional[str] = None, max_idle: Optional[int] = None) -> ConnectionPool:
    """
    Initialize the process-wide connection pool (once).

    Args:
        dsn: Connection string. Defaults to DB_CONNECTION_STRING.
        max_idle: Idle-set capacity. Defaults to DB_POOL_SIZE.

    Returns:
        The process-wide ConnectionPool.

    Raises:
        ConfigurationError: If no connection string is configured.
    """
    global _pool
    with _pool_lock:
        if _pool is not None:
            return _pool
        dsn = dsn or config.DB_CONNECTION_STRING
        if not dsn:
            logger.error("DB_CONNECTION_STRING is not set.")
            raise ConfigurationError(
                "You must provide a connection string in the DB_CONNECTION_STRING environment variable."
            )
        _pool = ConnectionPool(dsn, max_idle if max_idle is not None else config.DB_POOL_SIZE)
        logger.info(f"Database connection pool initialized (max idle: {_pool.max_idle}).")
        return _pool


def get_pool() -> ConnectionPool:
    """Get the process-wide pool, creating it on first use."""
    if _pool is not None:
        return _pool
    return init_pool()


def close_pool() -> None:
    """Close idle connections of the process-wide pool and forget it."""
    global _pool
    with _pool_lock:
        pool, _pool = _pool, None
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed.")
