from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the failed-row log.

One ErrorRecord is written per row that could not be inserted during the
row-level fallback of a failed batch. row=-1 is used for file-level problems
where no single record is to blame.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: CSV file name being imported
        row: Data record ordinal (1-based). -1 when unknown
        no_kta: Card number of the failed record, if any
        error_type: Error classification in UPPER_SNAKE_CASE format
        db_message: Database error message or description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    row: int
    no_kta: str | None
    error_type: str  # UPPER_SNAKE
    db_message: str

    @staticmethod
    def create(file: str, row: int, no_kta: str | None, error_type: str, db_message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            no_kta=no_kta,
            error_type=error_type,
            db_message=db_message,
        )

    def to_json_line(self) -> str:
        # fixed key set: dataclass -> dict -> json
        return json.dumps(asdict(self), ensure_ascii=False)
