from __future__ import annotations

import csv
import warnings
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.config_models import CsvDialect
from ..models.row_data import RowData

"""Streaming CSV source.

The file is read with pandas in fixed-size chunks and handed out one RowData
at a time, so at most one chunk of raw rows is held in memory. The sequence
is forward-only and single-pass: the import consumes it start to finish.

- a leading UTF-8 BOM is dropped (``utf-8-sig``)
- every value stays a string (no dtype inference, no NA conversion)
- rows with more fields than the header are truncated to the header width,
  shorter rows are padded with None
"""

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "SourceFormatError",
    "iter_rows",
    "read_header",
]

DEFAULT_CHUNK_SIZE = 300


class SourceFormatError(Exception):
    """Raised when the input file cannot be opened, decoded or parsed."""


def _read_csv_kwargs(dialect: CsvDialect) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "sep": dialect.delimiter,
        "quotechar": dialect.quotechar,
        "quoting": csv.QUOTE_MINIMAL,
        "dtype": str,
        "keep_default_na": False,
        "na_filter": False,
        "skip_blank_lines": dialect.skip_empty_lines,
        "skipinitialspace": dialect.trim,
        "encoding": dialect.encoding,
        "index_col": False,
        # python engine: stray quotes inside unquoted fields are kept as data;
        # with index_col=False over-long rows are cut to the header width
        "engine": "python",
    }
    if dialect.escapechar and dialect.escapechar != dialect.quotechar:
        kwargs["escapechar"] = dialect.escapechar
        kwargs["doublequote"] = False
    else:
        kwargs["doublequote"] = True
    return kwargs


def _clean_header(name: Any) -> str:
    return str(name).replace("\ufeff", "").strip()


def read_header(path: Path, dialect: CsvDialect | None = None) -> list[str]:
    """Return the header row of ``path`` (BOM and surrounding blanks removed)."""
    dialect = dialect or CsvDialect()
    try:
        df = pd.read_csv(path, nrows=0, **_read_csv_kwargs(dialect))
    except FileNotFoundError as e:
        raise SourceFormatError(f"input file not found: {path}") from e
    except pd.errors.EmptyDataError as e:
        raise SourceFormatError(f"input file is empty: {path}") from e
    except (pd.errors.ParserError, UnicodeDecodeError, csv.Error) as e:
        # nrows=0 still tokenizes the whole file: the fault may be past the header
        raise SourceFormatError(f"{path.name}: malformed input: {e}") from e
    return [_clean_header(c) for c in df.columns]


def iter_rows(
    path: Path,
    dialect: CsvDialect | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[RowData]:
    """Yield the data records of ``path`` lazily, in file order.

    Raises
    ------
    SourceFormatError
        File missing, undecodable or structurally unparseable.
    """
    dialect = dialect or CsvDialect()
    columns = read_header(path, dialect)
    kwargs = _read_csv_kwargs(dialect)

    row_number = 0
    try:
        with pd.read_csv(path, chunksize=chunk_size, **kwargs) as reader:
            while True:
                with warnings.catch_warnings():
                    # over-long rows: "Length of header or names does not match"
                    warnings.simplefilter("ignore", pd.errors.ParserWarning)
                    chunk = next(reader, None)
                if chunk is None:
                    break
                chunk.columns = columns
                for values in chunk.itertuples(index=False, name=None):
                    row_number += 1
                    yield RowData(
                        row_number=row_number,
                        values={
                            col: _clean_value(v, dialect.trim)
                            for col, v in zip(columns, values, strict=False)
                        },
                    )
    except (pd.errors.ParserError, UnicodeDecodeError, csv.Error) as e:
        raise SourceFormatError(
            f"{path.name}: malformed input after record {row_number}: {e}"
        ) from e


def _clean_value(value: Any, trim: bool) -> str | None:
    if not isinstance(value, str):
        # padding for short rows
        return None
    return value.strip() if trim else value
