# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pytest

from kta_importer.logging.init import reset_logging
from kta_importer.models.member_record import member_columns
from kta_importer.source.row_decoder import SOURCE_COLUMNS


class FakeDbError(Exception):
    """Stands in for a psycopg2 error raised by the server."""


class FakeConnection:
    def __init__(self) -> None:
        self.closed = 0


class FakeMemberTable:
    """In-memory keanggotaan table: unique no_kta, atomic statements.

    - rows whose NIK is in ``reject_nik`` violate a (simulated) CHECK
      constraint and make the whole statement fail
    - values longer than ``max_length`` fail like a varchar(n) column
    - ``drop_connection`` makes the next statement fail with a closed connection
    """

    def __init__(self) -> None:
        self.columns = member_columns()
        self._kta = self.columns.index("no_kta")
        self._nik = self.columns.index("nik")
        self.rows: dict[str, tuple[Any, ...]] = {}
        self.statements: list[int] = []  # rows per INSERT statement
        self.sql: list[str] = []
        self.reject_nik: set[str] = set()
        self.max_length = {"rt_ktp": 3, "rw_ktp": 3, "kode_pos_ktp": 5}
        self.drop_connection = False

    def insert(self, cursor: FakeCursor, sql: str, rows: list[tuple[Any, ...]]) -> list[tuple[int]]:
        self.sql.append(sql)
        self.statements.append(len(rows))
        if self.drop_connection:
            cursor.connection.closed = 2
            raise FakeDbError("server closed the connection unexpectedly")
        for r in rows:
            if r[self._nik] in self.reject_nik:
                raise FakeDbError(f'new row violates check constraint "nik_format" (nik={r[self._nik]})')
            for column, limit in self.max_length.items():
                value = r[self.columns.index(column)]
                if value is not None and len(value) > limit:
                    raise FakeDbError(f"value too long for type character varying({limit})")
        staged: dict[str, tuple[Any, ...]] = {}
        for r in rows:
            kta = r[self._kta]
            if kta in self.rows or kta in staged:
                continue  # ON CONFLICT DO NOTHING
            staged[kta] = r
        self.rows.update(staged)
        return [(1,) for _ in staged]

    def row_for(self, no_kta: str) -> dict[str, Any]:
        return dict(zip(self.columns, self.rows[no_kta], strict=True))


class FakeCursor:
    def __init__(self, table: FakeMemberTable) -> None:
        self.table = table
        self.connection = FakeConnection()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DB_SCHEMA", "IMPORT_BATCH_SIZE", "DATABASE_URL", "PGDSN"):
        monkeypatch.delenv(name, raising=False)
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def member_table(monkeypatch) -> FakeMemberTable:
    """Patch execute_values so every INSERT lands in a FakeMemberTable."""
    import kta_importer.db.batch_insert as bi

    table = FakeMemberTable()

    def fake_execute_values(cursor, sql, argslist, template=None, page_size=100, fetch=False):
        assert fetch is True
        assert page_size == len(argslist)
        return table.insert(cursor, sql, list(argslist))

    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    return table


@pytest.fixture()
def fake_cursor(member_table: FakeMemberTable) -> FakeCursor:
    return FakeCursor(member_table)


def member_row(i: int, **overrides: str) -> dict[str, str]:
    """A well-formed source row; card numbers are unique per ``i``."""
    row = {
        "NIK": f"3201{i:012d}",
        "No. KTA": f"KTA-{i:06d}",
        "Nama Lengkap": f"Anggota {i}",
        "Kota Lahir": "Bandung",
        "Tgl Lahir": "1990-05-17",
        "Jenis Kelamin": "Laki-laki" if i % 2 else "Perempuan",
        "Agama": "Islam",
        "Golongan Darah": "O",
        "Status": "Kawin",
        "Alamat": "Jl. Merdeka No. 1",
        "RT": "001",
        "RW": "002",
        "Kode Pos": "40111",
        "Photo": f"photos/{i}.jpg",
        "Scan KTP": f"ktp/{i}.jpg",
        "tglentri": "2023-01-15 08:30:00",
        "users": "admin",
    }
    row.update(overrides)
    return row


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def write_member_csv(
    path: Path,
    rows: Iterable[dict[str, str]],
    *,
    bom: bool = True,
    columns: Iterable[str] = SOURCE_COLUMNS,
) -> Path:
    columns = list(columns)
    lines = [";".join(columns)]
    for row in rows:
        lines.append(";".join(_quote(row.get(c, "")) for c in columns))
    text = "\n".join(lines) + "\n"
    path.write_text(("\ufeff" if bom else "") + text, encoding="utf-8")
    return path


@pytest.fixture()
def make_row():
    return member_row


@pytest.fixture()
def make_csv(tmp_path: Path):
    """write_member_csv bound to a file under tmp_path."""
    def _make(rows: Iterable[dict[str, str]], name: str = "members.csv", **kwargs: Any) -> Path:
        return write_member_csv(tmp_path / name, rows, **kwargs)
    return _make


@pytest.fixture()
def cli_db(monkeypatch, member_table: FakeMemberTable) -> FakeMemberTable:
    """Route the CLI's db_cursor to the in-memory table.

    ``member_table.opened`` counts connection attempts; set
    ``member_table.refuse_connect`` to make opening the connection fail.
    """
    import kta_importer.cli as cli
    from kta_importer.db.batch_insert import StorageConnectionError

    member_table.opened = 0
    member_table.refuse_connect = False

    @contextmanager
    def fake_db_cursor(db_cfg) -> Iterator[FakeCursor]:
        member_table.opened += 1
        if member_table.refuse_connect:
            raise StorageConnectionError("cannot connect to database: connection refused")
        yield FakeCursor(member_table)

    monkeypatch.setattr(cli, "db_cursor", fake_db_cursor)
    return member_table
