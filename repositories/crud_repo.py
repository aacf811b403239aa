"""
repositories/crud_repo.py
-------------------------
Generic CRUD repository for any mapped record type.

Reads borrow a pooled (shared) connection; writes open a dedicated one.
Either way the connection goes back through `ConnectionPool.release` on
every exit path.
"""

from typing import Any, Callable, Generic, Optional, TypeVar

from db.connection import ConnectionPool, get_pool
from db.errors import DatabaseConnectionError, ExecutionError
from mapping.metadata import TableMetadata, get_metadata
from mapping.row_mapper import map_row, row_to_mapping
from mapping.sql_builder import (
    Statement,
    build_delete,
    build_insert,
    build_select_all,
    build_select_by_id,
    build_update,
)
from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
TId = TypeVar("TId")


class CrudRepository(Generic[T, TId]):
    """
    CRUD operations for the record type `model`.

    Subclasses set `model`; it can also be passed to the constructor:

        class CustomerRepository(CrudRepository[Customer, int]):
            model = Customer

    Args:
        model: Record type, overriding the class attribute.
        pool: Connection pool. Defaults to the process-wide pool.

    Raises:
        ConfigurationError: If `model` cannot be mapped or, when no pool is
            given, no connection string is configured.
    """

    model: Optional[type] = None

    def __init__(self, model: Optional[type] = None, pool: Optional[ConnectionPool] = None):
        if model is not None:
            self.model = model
        if self.model is None:
            raise TypeError(f"{type(self).__name__} has no record type; set `model`.")
        self.meta: TableMetadata = get_metadata(self.model)
        self.pool = pool if pool is not None else get_pool()

    @property
    def _marker(self) -> str:
        return self.pool.placeholder

    # ── READ ──────────────────────────────────────────────

    def find_by_id(self, id_value: TId) -> Optional[T]:
        """
        Fetch a single record by identifier.

        Returns:
            The record, or None if no row matches.
        """
        stmt = build_select_by_id(self.meta, id_value, self._marker)

        def fetch_first(cur):
            row = cur.fetchone()
            return row_to_mapping(cur, row) if row else None

        with self.pool.shared() as conn:
            row = self._run(conn, stmt, fetch_first)
        return map_row(row, self.meta, self.model) if row is not None else None

    def find_all(self) -> list[T]:
        """Fetch every record of the table, in the order the store returns them."""
        stmt = build_select_all(self.meta)
        with self.pool.shared() as conn:
            rows = self._run(conn, stmt, lambda cur: [row_to_mapping(cur, r) for r in cur.fetchall()])
        return [map_row(row, self.meta, self.model) for row in rows]

    # ── CREATE ────────────────────────────────────────────

    def create(self, entity: T) -> bool:
        """
        Insert `entity`, skipping its identifier and every None field.

        Returns:
            True if a row was inserted.
        """
        created = self._write(build_insert(self.meta, entity, self._marker))
        if created:
            logger.info(f"Inserted a row into {self.meta.table}")
        return created

    # ── UPDATE ────────────────────────────────────────────

    def update(self, id_value: TId, entity: T) -> bool:
        """
        Write the non-None fields of `entity` to the row `id_value`.

        Fields left as None keep their stored value.

        Returns:
            True if a row was updated, False otherwise (including when
            `entity` has no field set).
        """
        stmt = build_update(self.meta, id_value, entity, self._marker)
        if stmt is None:
            logger.warning(f"Nothing to update for {self.meta.table} #{id_value}")
            return False
        updated = self._write(stmt)
        if updated:
            logger.info(f"Updated {self.meta.table} #{id_value}")
        return updated

    # ── DELETE ────────────────────────────────────────────

    def delete(self, id_value: TId) -> bool:
        """
        Delete the row `id_value`.

        Returns:
            True if a row was deleted, False otherwise.
        """
        deleted = self._write(build_delete(self.meta, id_value, self._marker))
        if deleted:
            logger.info(f"Deleted {self.meta.table} #{id_value}")
        return deleted

    # ── HELPERS ───────────────────────────────────────────

    def _run(self, conn, stmt: Statement, consume: Callable[[Any], Any]) -> Any:
        """
        Execute `stmt` on `conn` and return `consume(cursor)`.

        Driver errors are raised as DatabaseConnectionError (no cursor could
        be opened) or ExecutionError (execute, fetch or commit failed). A
        failed statement is rolled back first; a failing rollback is only
        logged.
        """
        logger.debug(f"Executing: {stmt.sql}")
        try:
            cur = conn.cursor()
        except Exception as e:
            logger.error(f"Failed to open a cursor on {self.meta.table}: {e}")
            raise DatabaseConnectionError(f"Connection is not usable: {e}") from e
        try:
            cur.execute(stmt.sql, stmt.params)
            return consume(cur)
        except Exception as e:
            self._rollback(conn)
            logger.error(f"Failed to execute on {self.meta.table}: {e}")
            raise ExecutionError(f"{stmt.sql}: {e}") from e
        finally:
            try:
                cur.close()
            except Exception as e:
                logger.warning(f"Error while closing cursor: {e}")

    @staticmethod
    def _rollback(conn) -> None:
        try:
            conn.rollback()
        except Exception as e:
            logger.warning(f"Rollback failed: {e}")

    def _write(self, stmt: Statement) -> bool:
        with self.pool.dedicated() as conn:
            def commit(cur) -> bool:
                affected = cur.rowcount > 0
                conn.commit()
                return affected

            return self._run(conn, stmt, commit)
