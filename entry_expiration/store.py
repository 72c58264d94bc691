from __future__ import annotations

import logging
import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Protocol

from .errors import StoreError
from .settings import Settings


logger = logging.getLogger(__name__)


class EntryStore(Protocol):
    """Record store holding the form entries."""

    def count_older_than(self, cutoff: str) -> int:
        """Number of entries whose timestamp is strictly earlier than ``cutoff``."""
        ...

    def delete_older_than(self, cutoff: str) -> int:
        """Delete entries strictly earlier than ``cutoff``; return affected rows."""
        ...


def safe_ident(name: str) -> str:
    s = str(name or "").strip()
    if not re.match(r"^[A-Za-z_][A-Za-z0-9_]*$", s):
        raise StoreError(f"Invalid SQL identifier: {name!r}")
    return s


class SqlEntryStore:
    """Shared DB-API implementation.

    Subclasses set the placeholder style and identifier quoting of their
    driver. Driver errors listed in ``errors`` are re-raised as StoreError.
    """

    placeholder = "?"
    quote = '"'

    def __init__(
        self,
        conn: Any,
        *,
        table: str = "wp_wpforms_entries",
        date_column: str = "date",
        errors: tuple[type[BaseException], ...] = (),
    ):
        self.conn = conn
        self.table = safe_ident(table)
        self.date_column = safe_ident(date_column)
        self._errors = errors

    def _q(self, ident: str) -> str:
        return f"{self.quote}{ident}{self.quote}"

    def _where(self) -> str:
        return f"{self._q(self.date_column)} < {self.placeholder}"

    def _execute(self, sql: str, params: tuple):
        cur = self.conn.cursor()
        try:
            cur.execute(sql, params)
        except self._errors as e:
            raise StoreError(f"{type(e).__name__}: {e}") from e
        return cur

    def count_older_than(self, cutoff: str) -> int:
        sql = f"SELECT COUNT(*) FROM {self._q(self.table)} WHERE {self._where()}"
        cur = self._execute(sql, (cutoff,))
        try:
            row = cur.fetchone()
        finally:
            cur.close()
        return int(row[0]) if row else 0

    def delete_older_than(self, cutoff: str) -> int:
        sql = f"DELETE FROM {self._q(self.table)} WHERE {self._where()}"
        cur = self._execute(sql, (cutoff,))
        try:
            affected = int(getattr(cur, "rowcount", -1))
            self.conn.commit()
        except self._errors as e:
            raise StoreError(f"{type(e).__name__}: {e}") from e
        finally:
            cur.close()
        logger.debug("deleted %s row(s) from %s", affected, self.table)
        return affected


class SqliteEntryStore(SqlEntryStore):
    def __init__(self, conn: sqlite3.Connection, **kwargs: Any):
        kwargs.setdefault("errors", (sqlite3.Error,))
        super().__init__(conn, **kwargs)


class PostgresEntryStore(SqlEntryStore):
    placeholder = "%s"

    def __init__(self, conn: Any, **kwargs: Any):
        if "errors" not in kwargs:
            import psycopg  # type: ignore

            kwargs["errors"] = (psycopg.Error,)
        super().__init__(conn, **kwargs)


class MySQLEntryStore(SqlEntryStore):
    placeholder = "%s"
    quote = "`"

    def __init__(self, conn: Any, **kwargs: Any):
        if "errors" not in kwargs:
            import mysql.connector  # type: ignore

            kwargs["errors"] = (mysql.connector.Error,)
        super().__init__(conn, **kwargs)


def connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn


def _require_psycopg():
    try:
        import psycopg  # type: ignore
    except ImportError as e:
        raise StoreError(f"psycopg is required for EE_DB_BACKEND=POSTGRES: {e}") from e
    return psycopg


def _require_mysql():
    try:
        import mysql.connector  # type: ignore
    except ImportError as e:
        raise StoreError(f"mysql-connector-python is required for EE_DB_BACKEND=MYSQL: {e}") from e
    return mysql.connector


def _open_connection(settings: Settings) -> tuple[Any, type[SqlEntryStore], tuple[type[BaseException], ...]]:
    backend = settings.backend
    if backend == "SQLITE":
        try:
            return connect(settings.EE_DB_PATH), SqliteEntryStore, (sqlite3.Error,)
        except sqlite3.Error as e:
            raise StoreError(f"Could not open SQLite database {settings.EE_DB_PATH}: {e}") from e

    if backend == "POSTGRES":
        dsn = str(settings.EE_POSTGRES_DSN or "").strip()
        if not dsn:
            raise StoreError("EE_POSTGRES_DSN is required for EE_DB_BACKEND=POSTGRES")
        psycopg = _require_psycopg()
        try:
            return psycopg.connect(dsn), PostgresEntryStore, (psycopg.Error,)
        except psycopg.Error as e:
            raise StoreError(f"Could not connect to PostgreSQL: {e}") from e

    if backend == "MYSQL":
        if not settings.EE_MYSQL_DATABASE:
            raise StoreError("EE_MYSQL_DATABASE is required for EE_DB_BACKEND=MYSQL")
        connector = _require_mysql()
        try:
            conn = connector.connect(
                host=settings.EE_MYSQL_HOST,
                port=settings.EE_MYSQL_PORT,
                user=settings.EE_MYSQL_USER,
                password=settings.EE_MYSQL_PASSWORD,
                database=settings.EE_MYSQL_DATABASE,
            )
        except connector.Error as e:
            raise StoreError(f"Could not connect to MySQL: {e}") from e
        return conn, MySQLEntryStore, (connector.Error,)

    raise StoreError(f"Unknown EE_DB_BACKEND: {settings.EE_DB_BACKEND!r} (expected SQLITE, POSTGRES or MYSQL)")


@contextmanager
def open_store(settings: Settings) -> Iterator[SqlEntryStore]:
    """Connect to the configured backend and yield an entry store.

    The connection is closed when the block exits.
    """

    conn, store_cls, errors = _open_connection(settings)
    logger.debug("opened %s store for table %s", settings.backend, settings.entries_table)
    try:
        yield store_cls(
            conn,
            table=settings.entries_table,
            date_column=settings.EE_DATE_COLUMN,
            errors=errors,
        )
    finally:
        conn.close()
