"""Database engine and bulk writer.

This module provides:
- Database: Connection manager with WAL mode for concurrent readers
- BulkWriter: Core-SQL bulk writes inside one transaction
- Retry logic for SQLite busy timeout handling

The hybrid pattern:
- Use ORM sessions for reads (the store is read-only after ingestion)
- Use BulkWriter for the ingestion pass (all tables, one transaction)
"""

from __future__ import annotations

import time
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import bindparam, event, func, select
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, create_engine

if TYPE_CHECKING:
    from sqlalchemy import Connection, Engine

logger = structlog.get_logger()

# Retry configuration for SQLite busy handling
DEFAULT_BUSY_TIMEOUT_MS = 30000
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 0.1  # 100ms base
DEFAULT_RETRY_MAX_DELAY = 2.0  # 2s max


def _is_database_locked_error(error: Exception) -> bool:
    """Check if error is a SQLite database locked error."""
    error_str = str(error).lower()
    return "database is locked" in error_str or "database is busy" in error_str


class Database:
    """SQLite connection manager with WAL mode for concurrent access.

    Includes retry logic with exponential backoff for acquiring the
    write lock when another connection holds it.
    """

    def __init__(
        self,
        db_path: Path,
        busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        retry_max_delay: float = DEFAULT_RETRY_MAX_DELAY,
    ) -> None:
        self.db_path = db_path
        self._busy_timeout_ms = busy_timeout_ms
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay
        self.engine = self._create_engine()

    def _create_engine(self) -> Engine:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )
        busy_timeout_ms = self._busy_timeout_ms

        def _on_connect(dbapi_conn: Any, _connection_record: Any) -> None:
            _configure_pragmas(dbapi_conn, busy_timeout_ms)

        event.listen(engine, "connect", _on_connect)
        return engine

    def create_all(self) -> None:
        """Create all tables from SQLModel metadata."""
        SQLModel.metadata.create_all(self.engine)

    def dispose(self) -> None:
        """Close pooled connections."""
        self.engine.dispose()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """ORM session for reads."""
        with Session(self.engine) as session:
            yield session

    @contextmanager
    def bulk_writer(self) -> Generator[BulkWriter, None, None]:
        """
        Bulk writer holding the write lock for its whole lifetime.

        The transaction starts with BEGIN IMMEDIATE, retried with
        exponential backoff while the database is locked. Auto-commits
        on successful exit, rolls back on exception.
        """
        conn = self._connect_immediate()
        writer = BulkWriter(conn)
        try:
            yield writer
            writer.commit()
        except Exception:
            writer.rollback()
            raise
        finally:
            writer.close()

    def _connect_immediate(self) -> Connection:
        last_error: OperationalError | None = None
        for attempt in range(self._max_retries + 1):  # +1 for initial attempt
            conn = self.engine.connect()
            try:
                conn.exec_driver_sql("BEGIN IMMEDIATE")
                return conn
            except OperationalError as e:
                conn.close()
                if not _is_database_locked_error(e) or attempt >= self._max_retries:
                    raise
                delay = min(self._retry_base_delay * (2**attempt), self._retry_max_delay)
                logger.warning(
                    "sqlite_busy_retry",
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                    delay_sec=delay,
                )
                time.sleep(delay)
                last_error = e
        # Loop always returns or raises; keeps type checkers satisfied
        assert last_error is not None
        raise last_error


def _configure_pragmas(dbapi_conn: Any, busy_timeout_ms: int) -> None:
    """Configure SQLite for concurrent readers and explicit transactions."""
    # Let SQLAlchemy see our own BEGIN statements instead of pysqlite's
    dbapi_conn.isolation_level = None
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
    cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class BulkWriter:
    """Bulk writes using Core SQL, bypassing ORM overhead.

    Owns one connection with an open transaction; the caller (normally
    Database.bulk_writer) decides whether it commits or rolls back.
    """

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def insert_many(self, model_class: type[SQLModel], records: list[dict[str, Any]]) -> int:
        """Bulk insert records into table, returning count inserted."""
        if not records:
            return 0

        table = model_class.__table__  # type: ignore[attr-defined]
        self.conn.execute(table.insert(), records)
        return len(records)

    def update_many(
        self,
        model_class: type[SQLModel],
        key_column: str,
        records: list[dict[str, Any]],
    ) -> int:
        """
        Bulk update rows matched by key_column.

        Every record must hold key_column plus the same set of columns to set.

        Returns:
            Number of records applied
        """
        if not records:
            return 0

        table = model_class.__table__  # type: ignore[attr-defined]
        set_columns = [k for k in records[0] if k != key_column]
        stmt = (
            table.update()
            .where(table.c[key_column] == bindparam(f"key_{key_column}"))
            .values({col: bindparam(f"set_{col}") for col in set_columns})
        )
        params = [
            {f"key_{key_column}": r[key_column], **{f"set_{c}": r[c] for c in set_columns}}
            for r in records
        ]
        self.conn.execute(stmt, params)
        return len(records)

    def delete_all(self, model_class: type[SQLModel]) -> int:
        """Delete every row of a table, returning count affected."""
        table = model_class.__table__  # type: ignore[attr-defined]
        result = self.conn.execute(table.delete())
        return int(result.rowcount)

    def count(self, model_class: type[SQLModel]) -> int:
        """Row count as seen by this transaction."""
        table = model_class.__table__  # type: ignore[attr-defined]
        return int(self.conn.execute(select(func.count()).select_from(table)).scalar_one())

    def commit(self) -> None:
        """Commit the current transaction."""
        self.conn.exec_driver_sql("COMMIT")

    def rollback(self) -> None:
        """Rollback the current transaction, if SQLite has not already."""
        dbapi_conn = self.conn.connection.dbapi_connection
        if dbapi_conn is not None and not dbapi_conn.in_transaction:
            return
        self.conn.exec_driver_sql("ROLLBACK")

    def close(self) -> None:
        """Close the connection."""
        self.conn.close()
