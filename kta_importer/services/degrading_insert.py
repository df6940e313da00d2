from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from ..db.batch_insert import BatchInsertError, BatchMetrics, batch_insert, insert_row
from ..logging.error_log import FailedRowLog
from ..models.config_models import ImportConfig
from ..models.member_record import MemberRecord, member_columns
from ..models.processing_result import ImportCounters

"""Batch insert with row-level fallback.

flush(records):
1. one conflict-ignoring INSERT for the whole batch
   - inserted += rows reported by the server, skipped += the rest
2. if that statement fails, every record of the batch is inserted on its own
   (same conflict policy, arrival order):
   - persisted -> inserted
   - dropped by the conflict key -> skipped
   - error -> failed, recorded with row number / no_kta / reason

Nothing but StorageConnectionError leaves flush(): a lost connection aborts
the whole import, any other failure is absorbed into the counters.
"""

__all__ = [
    "DegradingInsertExecutor",
    "ERROR_TYPE_ROW_INSERT",
]

logger = logging.getLogger(__name__)

ERROR_TYPE_ROW_INSERT = "ROW_INSERT_FAILED"


class DegradingInsertExecutor:
    def __init__(
        self,
        cursor: Any,
        config: ImportConfig,
        counters: ImportCounters,
        *,
        error_log: FailedRowLog | None = None,
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> None:
        self.cursor = cursor
        self.table = config.qualified_table
        self.conflict_column = config.conflict_column
        self.columns = member_columns()
        self.counters = counters
        self.error_log = error_log
        self.metrics_callback = metrics_callback
        self.bulk_batches = 0
        self.degraded_batches = 0

    def flush(self, records: Sequence[MemberRecord]) -> None:
        if not records:
            return
        self.bulk_batches += 1
        try:
            result = batch_insert(
                self.cursor,
                self.table,
                self.columns,
                [r.to_row() for r in records],
                conflict_column=self.conflict_column,
                metrics_callback=self.metrics_callback,
            )
        except BatchInsertError as e:
            self.degraded_batches += 1
            logger.warning(
                f"batch of {len(records)} rows failed, retrying row by row "
                f"(rows {records[0].row_number}-{records[-1].row_number}): {e}"
            )
            self._insert_one_by_one(records)
            return

        self.counters.inserted += result.inserted_rows
        self.counters.skipped += result.conflicted_rows
        logger.debug(
            f"batch inserted={result.inserted_rows} conflicts={result.conflicted_rows}"
        )

    def _insert_one_by_one(self, records: Sequence[MemberRecord]) -> None:
        for record in records:
            try:
                persisted = insert_row(
                    self.cursor,
                    self.table,
                    self.columns,
                    record.to_row(),
                    conflict_column=self.conflict_column,
                )
            except BatchInsertError as e:
                self._record_failure(record, str(e))
                continue
            if persisted:
                self.counters.inserted += 1
            else:
                self.counters.skipped += 1

    def _record_failure(self, record: MemberRecord, reason: str) -> None:
        reason = reason.strip()
        self.counters.record_failure(record.row_number, record.no_kta, reason)
        logger.warning(f"row {record.row_number} no_kta={record.no_kta!r} failed: {reason}")
        if self.error_log is not None:
            self.error_log.record(record.row_number, record.no_kta, ERROR_TYPE_ROW_INSERT, reason)
