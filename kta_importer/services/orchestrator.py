from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..logging.error_log import FailedRowLog
from ..models.config_models import ImportConfig
from ..models.processing_result import BatchStatsAccumulator, ImportCounters, ProcessingResult
from ..models.row_data import RowData
from ..source.csv_reader import SourceFormatError, iter_rows
from ..source.row_decoder import REQUIRED_COLUMNS, decode_row
from .batch_buffer import BatchBuffer
from .degrading_insert import DegradingInsertExecutor
from .progress import RowProgress

"""Import orchestration: one CSV file into the membership table.

Single consumer loop, strictly sequential:

    iter_rows -> decode_row -> BatchBuffer -> DegradingInsertExecutor

Only one INSERT (bulk or row-level) is in flight at any time and the row
feed waits while a batch is written. The optional cancel_event is looked at
after each flush only, so a cancelled run never leaves a half-written batch.
"""

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """The input file cannot be imported (missing, undecodable, malformed)."""


def import_csv(
    path: Path,
    config: ImportConfig,
    cursor: Any,
    *,
    cancel_event: threading.Event | None = None,
    progress_enabled: bool | None = None,
) -> ProcessingResult:
    """Import ``path`` into ``config.schema``.``config.table``.

    Returns the aggregated counters. Row and batch level failures end up in
    the counters; ProcessingError (bad input file) and StorageConnectionError
    (connection lost) propagate.
    """
    path = Path(path)
    start_time = datetime.now(UTC)
    counters = ImportCounters(max_failure_details=config.max_failure_details)
    error_log = FailedRowLog(path.name, Path(config.error_log_dir))
    batch_stats = BatchStatsAccumulator()
    executor = DegradingInsertExecutor(
        cursor,
        config,
        counters,
        error_log=error_log,
        metrics_callback=lambda m: batch_stats.add_batch_time(m.elapsed_seconds),
    )
    buffer = BatchBuffer(config.batch_size, executor.flush)
    cancelled = False

    logger.info(
        f"Importing {path.name} into {config.schema}.{config.table} "
        f"(batch_size={config.batch_size})"
    )
    try:
        rows = iter_rows(
            path,
            config.dialect,
            chunk_size=config.batch_size,
        )
        with RowProgress(path.name, enabled=progress_enabled) as progress:
            try:
                for row in rows:
                    counters.rows_read += 1
                    progress.advance()
                    if counters.rows_read == 1:
                        _warn_missing_columns(path, row)
                    record = decode_row(row, created_by_default=config.created_by_default)
                    if record is None:
                        counters.skipped += 1
                        logger.debug(f"row {row.row_number}: missing NIK / No. KTA, skipped")
                        continue
                    flushes_before = buffer.flush_count
                    buffer.add(record)
                    if buffer.flush_count == flushes_before:
                        continue
                    progress.set_postfix(
                        inserted=counters.inserted,
                        skipped=counters.skipped,
                        failed=counters.failed,
                    )
                    if cancel_event is not None and cancel_event.is_set():
                        logger.warning(f"import cancelled after {counters.rows_read} rows")
                        cancelled = True
                        break
            except SourceFormatError:
                # rows decoded before the broken part are still written
                buffer.flush()
                raise
            buffer.flush()
    except SourceFormatError as e:
        raise ProcessingError(str(e)) from e
    finally:
        _flush_error_log(error_log)

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    throughput_rps = counters.rows_read / elapsed_seconds if elapsed_seconds > 0 else 0.0
    _, avg_batch_seconds, p95_batch_seconds = batch_stats.get_stats()

    return ProcessingResult(
        file_name=path.name,
        inserted=counters.inserted,
        skipped=counters.skipped,
        failed=counters.failed,
        rows_read=counters.rows_read,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput_rps,
        total_batches=executor.bulk_batches,
        degraded_batches=executor.degraded_batches,
        avg_batch_seconds=avg_batch_seconds,
        p95_batch_seconds=p95_batch_seconds,
        failures=list(counters.failures),
        cancelled=cancelled,
    )


def _warn_missing_columns(path: Path, row: RowData) -> None:
    # rows are still read; decode_row turns each one into a skip
    missing = [c for c in REQUIRED_COLUMNS if c not in row.values]
    if missing:
        logger.warning(f"{path.name}: header has no {missing} column, all rows will be skipped")


def _flush_error_log(error_log: FailedRowLog) -> None:
    try:
        written = error_log.flush()
    except OSError as e:
        logger.warning(f"could not write failed-row log: {e}")
        return
    if written is not None:
        logger.info(f"failed rows written to {written}")
