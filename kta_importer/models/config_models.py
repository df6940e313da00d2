from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the KTA membership CSV importer.

The pipeline never reads process state on its own: the CLI resolves the
environment / YAML file into an ImportConfig (see config/loader.py) and passes
it down explicitly.
"""

DEFAULT_SCHEMA = "public"
DEFAULT_TABLE = "keanggotaan"
DEFAULT_BATCH_SIZE = 300
DEFAULT_CONFLICT_COLUMN = "no_kta"
DEFAULT_CREATED_BY = "system"
DEFAULT_MAX_FAILURE_DETAILS = 1000


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class CsvDialect:
    """Fixed delimited-file dialect (no auto-detection)."""
    delimiter: str = ";"
    quotechar: str = '"'
    escapechar: str | None = '"'  # same as quotechar -> doubled quotes
    trim: bool = True  # strip leading / trailing whitespace of every field
    skip_empty_lines: bool = True
    encoding: str = "utf-8-sig"  # utf-8-sig drops a leading BOM


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for one import run."""
    schema: str = DEFAULT_SCHEMA
    table: str = DEFAULT_TABLE
    batch_size: int = DEFAULT_BATCH_SIZE
    conflict_column: str = DEFAULT_CONFLICT_COLUMN
    created_by_default: str = DEFAULT_CREATED_BY
    max_failure_details: int = DEFAULT_MAX_FAILURE_DETAILS  # cap for retained row failures
    error_log_dir: str = "logs"
    dialect: CsvDialect = field(default_factory=CsvDialect)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    @property
    def qualified_table(self) -> str:
        """Schema-qualified, quoted table name for SQL text."""
        return f"{quote_ident(self.schema)}.{quote_ident(self.table)}"


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'
