from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import psycopg2

from ..models.config_models import DatabaseConfig
from .batch_insert import StorageConnectionError

"""psycopg2 connection handling for the importer.

Resolution order for connection parameters:
    1. DATABASE_URL / PGDSN (whole DSN)
    2. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. the ``database`` section of config/import.yml (fallback for missing parts)

The connection runs in autocommit mode: every INSERT statement commits on its
own, a failed batch leaves nothing behind and does not poison the following
row-level statements.
"""

__all__ = [
    "db_cursor",
    "resolve_dsn",
]


def resolve_dsn(db_cfg: DatabaseConfig, env: Mapping[str, str] | None = None) -> str:
    env = os.environ if env is None else env
    dsn = env.get("DATABASE_URL") or env.get("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = env.get("PGHOST", db_cfg.host or "localhost")
    port = env.get("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = env.get("PGUSER", db_cfg.user or "postgres")
    password = env.get("PGPASSWORD", db_cfg.password or "")
    database = env.get("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def db_cursor(db_cfg: DatabaseConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield a cursor on an autocommit connection; closes both on exit.

    Raises StorageConnectionError when the connection cannot be opened.
    """
    try:
        conn = psycopg2.connect(resolve_dsn(db_cfg))
    except psycopg2.Error as e:
        raise StorageConnectionError(f"cannot connect to database: {e}") from e
    conn.autocommit = True
    cur = conn.cursor()
    try:
        yield cur
    finally:
        cur.close()
        conn.close()
