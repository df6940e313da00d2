from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Failed-row log of one import run.

Rows rejected during the row-level fallback of a degraded batch are kept
in memory and appended as JSON Lines to ``<log_dir>/errors-YYYYMMDD-HHMMSS.log``
when the run flushes the log. The stamp is the UTC start of the run, so all
failures of a run share one file; a run without failures writes nothing.
"""

__all__ = [
    "FailedRowLog",
]

DEFAULT_LOG_DIR = Path("logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class FailedRowLog:
    """Pending ErrorRecords for one CSV file, written on flush()."""

    def __init__(self, file_name: str, log_dir: Path | None = None) -> None:
        self.file_name = file_name
        stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
        self.path = (log_dir if log_dir is not None else DEFAULT_LOG_DIR) / f"errors-{stamp}.log"
        self._pending: list[ErrorRecord] = []
        self.written = 0

    def record(self, row_number: int, no_kta: str | None, error_type: str, reason: str) -> None:
        self._pending.append(
            ErrorRecord.create(
                file=self.file_name,
                row=row_number,
                no_kta=no_kta,
                error_type=error_type,
                db_message=reason,
            )
        )

    def __len__(self) -> int:
        return len(self._pending)

    def flush(self) -> Path | None:
        """Append pending records; returns the log path, or None if there was nothing to write."""
        if not self._pending:
            return None
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.writelines(r.to_json_line() + "\n" for r in self._pending)
        self.written += len(self._pending)
        self._pending.clear()
        return self.path
