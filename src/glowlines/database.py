"""PostgreSQL access: connection, scalar queries and the streaming cursor."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import psycopg
from psycopg import sql

from .errors import CursorExhaustedError, DatabaseConnectionError, QueryError


if TYPE_CHECKING:
    from collections.abc import Iterator


__all__ = [
    "CURSOR_NAME",
    "CursorStream",
    "connect",
    "count_rows",
    "fetch_value",
    "open_cursor",
]

logger = logging.getLogger(__name__)

CURSOR_NAME = "glowlines_cursor"
COUNT_SQL = "with data as ( {} ) select count(*) from data"

Row = tuple[Any, ...]


def connect(dsn: str, attempts: int = 3, delay: float = 1.0) -> psycopg.Connection:
    """Open a connection, retrying transient failures.

    Args:
        dsn: libpq connection string or URL.
        attempts: Maximum number of connection attempts.
        delay: Base delay in seconds; grows linearly with each attempt.

    Returns:
        An open connection. Use it as a context manager so it is closed on
        every exit path.

    Raises:
        DatabaseConnectionError: If no attempt succeeds.
    """
    last_error: psycopg.Error | None = None
    for attempt in range(1, attempts + 1):
        try:
            return psycopg.connect(dsn)
        except psycopg.OperationalError as e:
            last_error = e
            logger.warning("Connection attempt %d/%d failed: %s", attempt, attempts, e)
            if attempt < attempts:
                time.sleep(delay * attempt)
        except psycopg.Error as e:
            raise DatabaseConnectionError(f"Unable to connect to the database: {e}") from e

    raise DatabaseConnectionError(
        f"Unable to connect to the database after {attempts} attempts: {last_error}"
    ) from last_error


def _as_sql(query: str | sql.Composable) -> sql.Composable:
    return query if isinstance(query, sql.Composable) else sql.SQL(query)


def _execute(conn: psycopg.Connection, statement: sql.Composable, action: str) -> psycopg.Cursor:
    try:
        return conn.execute(statement)
    except psycopg.Error as e:
        raise QueryError(f"Failed {action}: {str(e).strip()}") from e


def fetch_value(conn: psycopg.Connection, query: str | sql.Composable) -> Any:
    """Run a query in its own transaction and return the first column of the first row.

    Returns:
        The value, or None when the query returns no rows.

    Raises:
        QueryError: If the query fails.
    """
    try:
        with conn.transaction():
            row = _execute(conn, _as_sql(query), "running query").fetchone()
    except psycopg.Error as e:
        raise QueryError(f"Failed running query: {str(e).strip()}") from e
    return None if row is None else row[0]


def count_rows(conn: psycopg.Connection, query: str) -> int:
    """Count the rows a query returns.

    Raises:
        QueryError: If the count query fails.
    """
    value = fetch_value(conn, sql.SQL(COUNT_SQL).format(sql.SQL(query)))
    return int(value or 0)


class CursorStream:
    """Forward-only batched reader over a declared server-side cursor.

    Instances are created by :func:`open_cursor`, which owns the enclosing
    transaction.
    """

    def __init__(self, conn: psycopg.Connection, name: str = CURSOR_NAME) -> None:
        self.name = name
        self.rows_fetched = 0
        self._conn = conn
        self._ident = sql.Identifier(name)
        self._exhausted = False
        self._closed = False

    @property
    def has_more(self) -> bool:
        """Whether another fetch may return rows."""
        return not (self._exhausted or self._closed)

    def fetch_next(self, batch_size: int) -> list[Row]:
        """Fetch up to ``batch_size`` rows.

        An empty list marks the stream as exhausted.

        Raises:
            CursorExhaustedError: If the stream is exhausted or closed.
            QueryError: If the fetch fails.
        """
        if self._closed:
            raise CursorExhaustedError(f"Cursor {self.name} is closed")
        if self._exhausted:
            raise CursorExhaustedError(f"Cursor {self.name} is exhausted")

        statement = sql.SQL("FETCH FORWARD {} FROM {}").format(
            sql.SQL(str(int(batch_size))), self._ident
        )
        rows = _execute(self._conn, statement, "fetching rows").fetchall()
        if not rows:
            self._exhausted = True
            logger.info("Finished retrieving data")
        self.rows_fetched += len(rows)
        return rows

    def batches(self, batch_size: int) -> Iterator[list[Row]]:
        """Yield non-empty batches until the cursor is exhausted."""
        while self.has_more:
            rows = self.fetch_next(batch_size)
            if rows:
                yield rows

    def close(self) -> None:
        """Close the server-side cursor. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        _execute(self._conn, sql.SQL("CLOSE {}").format(self._ident), "closing cursor")


@contextmanager
def open_cursor(
    conn: psycopg.Connection,
    query: str,
    name: str = CURSOR_NAME,
) -> Iterator[CursorStream]:
    """Declare a server-side cursor for ``query`` inside a transaction.

    The cursor is closed and the transaction committed when the block exits
    normally; on error the transaction is rolled back, which also discards
    the cursor.

    Raises:
        QueryError: If declaring, fetching from, or closing the cursor fails.
    """
    statement = sql.SQL("DECLARE {} NO SCROLL CURSOR FOR {}").format(
        sql.Identifier(name), sql.SQL(query)
    )
    try:
        with conn.transaction():
            _execute(conn, statement, "declaring cursor")
            stream = CursorStream(conn, name)
            yield stream
            stream.close()
    except psycopg.Error as e:
        raise QueryError(f"Cursor transaction failed: {str(e).strip()}") from e
