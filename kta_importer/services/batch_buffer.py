from __future__ import annotations

from collections.abc import Callable, Sequence

from ..models.member_record import MemberRecord

"""Bounded staging buffer between the row decoder and the insert executor.

The buffer flushes itself when it reaches batch_size; the orchestrator calls
flush() once more at end of stream for the remainder. Flushing is a plain
synchronous call, so the row feed is paused while a batch is being written
and at most one batch of records is held at a time.
"""

__all__ = [
    "BatchBuffer",
]


class BatchBuffer:
    """Ordered buffer of MemberRecord (insertion order = input order)."""

    def __init__(self, batch_size: int, on_flush: Callable[[Sequence[MemberRecord]], None]) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.batch_size = batch_size
        self._on_flush = on_flush
        self._records: list[MemberRecord] = []
        self.flush_count = 0

    def __len__(self) -> int:
        return len(self._records)

    def add(self, record: MemberRecord) -> None:
        self._records.append(record)
        if len(self._records) >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        if not self._records:
            return
        batch = self._records
        # emptied whatever the outcome; failed rows are never re-buffered
        self._records = []
        self.flush_count += 1
        self._on_flush(batch)
