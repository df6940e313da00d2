from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from datetime import datetime

"""Counters and result models for one import run.

ImportCounters is the only state the pipeline keeps between batches
(inserted / skipped / failed plus the retained failure details).
"""


@dataclass(frozen=True)
class FailureDetail:
    """A row that failed its individual insert during the fallback path."""
    row_number: int
    no_kta: str | None
    reason: str


@dataclass
class ImportCounters:
    inserted: int = 0
    skipped: int = 0
    failed: int = 0
    rows_read: int = 0
    max_failure_details: int = 1000
    failures: list[FailureDetail] = field(default_factory=list)
    failures_truncated: int = 0  # failures beyond the cap (counted, not kept)

    def record_failure(self, row_number: int, no_kta: str | None, reason: str) -> None:
        self.failed += 1
        if len(self.failures) < self.max_failure_details:
            self.failures.append(FailureDetail(row_number, no_kta, reason))
        else:
            self.failures_truncated += 1


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of one import run (input for the SUMMARY output)."""
    file_name: str
    inserted: int
    skipped: int
    failed: int
    rows_read: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float  # rows_read / elapsed
    total_batches: int = 0
    degraded_batches: int = 0
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0
    failures: list[FailureDetail] | None = None
    cancelled: bool = False


class BatchStatsAccumulator:
    """Accumulates per-statement timings reported by batch_insert."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Calculate batch statistics.

        Returns:
            tuple: (total_batches, avg_batch_seconds, p95_batch_seconds)
        """
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method='inclusive'
            )[18]  # 19th of 20 cut points

        return (total_batches, avg_batch_seconds, p95_batch_seconds)
