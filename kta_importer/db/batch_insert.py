from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

"""Conflict-ignoring INSERT primitives on top of psycopg2.extras.execute_values.

Every statement has the form::

    INSERT INTO "schema"."table" ("c1",...) VALUES %s
    ON CONFLICT ("no_kta") DO NOTHING RETURNING 1

so the number of returned rows is the number of rows actually persisted;
rows that collide with an existing key are dropped by the server without an
error. A batch is sent as a single statement (page_size = row count).

Failures are wrapped:
- BatchInsertError: the statement failed, the connection is still usable
- StorageConnectionError: the connection is gone; nothing further can succeed
"""


class BatchInsertError(Exception):
    pass


class StorageConnectionError(Exception):
    """The database connection was lost or closed."""


@dataclass(frozen=True)
class BatchMetrics:
    """Timing of a single INSERT statement."""
    batch_size: int  # Number of rows in this statement
    elapsed_seconds: float  # Time spent on execute_values call
    start_time: float  # time.time()
    end_time: float  # time.time()


@dataclass(frozen=True)
class InsertResult:
    submitted_rows: int
    inserted_rows: int  # as reported by RETURNING

    @property
    def conflicted_rows(self) -> int:
        return self.submitted_rows - self.inserted_rows


def _connection_lost(cursor: Any, error: BaseException) -> bool:
    if isinstance(error, psycopg2.InterfaceError):
        return True
    conn = getattr(cursor, "connection", None)
    # psycopg2: connection.closed is 0 while open, non-zero once closed / broken
    return bool(getattr(conn, "closed", 0))


def _insert_sql(table: str, columns: Sequence[str], conflict_column: str | None) -> str:
    cols_sql = ",".join(f'"{c}"' for c in columns)
    sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"
    if conflict_column:
        sql += f' ON CONFLICT ("{conflict_column}") DO NOTHING'
    return sql + " RETURNING 1"


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    conflict_column: str | None = None,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """Insert ``rows`` with one conflict-ignoring statement.

    Parameters
    ----------
    cursor: psycopg2 cursor (autocommit connection)
    table: schema-qualified, quoted table name
    columns: insert column names
    rows: value tuples in ``columns`` order
    conflict_column: unique column whose collisions are silently skipped
    metrics_callback: receives BatchMetrics after the statement ran
        (not invoked for an empty ``rows``)
    """
    rows_list = list(rows)
    if not rows_list:
        return InsertResult(submitted_rows=0, inserted_rows=0)

    sql = _insert_sql(table, columns, conflict_column)

    start_time = time.time()
    try:
        returned = execute_values(
            cursor, sql, rows_list, page_size=len(rows_list), fetch=True
        )
    except Exception as e:
        if _connection_lost(cursor, e):
            raise StorageConnectionError(str(e)) from e
        raise BatchInsertError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(rows_list),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    return InsertResult(submitted_rows=len(rows_list), inserted_rows=len(returned or []))


def insert_row(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    row: Sequence[Any],
    conflict_column: str | None = None,
) -> bool:
    """Insert a single row; True if persisted, False if it hit the conflict key."""
    result = batch_insert(cursor, table, columns, [row], conflict_column=conflict_column)
    return result.inserted_rows == 1
