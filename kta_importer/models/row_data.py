from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""RowData model: one raw record produced by the streaming CSV source.

RowData is ephemeral; the row decoder consumes it immediately.
"""

__all__ = [
    "RowData",
]


@dataclass(frozen=True)
class RowData:
    """Raw parsed record (column name -> raw string value).

    row_number is the 1-based ordinal of the data record in the file (header
    excluded, skipped blank lines not counted). It is the identifier used when
    a row has to be reported as failed.
    """
    row_number: int
    values: dict[str, Any]

    def get(self, column: str) -> Any:
        return self.values.get(column)
