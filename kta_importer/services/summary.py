from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""Summary rendering for the end of an import run.

The contract output is three SUMMARY lines::

    SUMMARY inserted=305
    SUMMARY skipped=0
    SUMMARY failed=0

(the SUMMARY label is added by the logging formatter). An additional
metrics line is logged at INFO.
"""

__all__ = [
    "format_number",
    "render_metrics_line",
    "render_summary_lines",
]


def format_number(value: float) -> str:
    """Render a float without scientific notation or a useless ``.0``."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip('0').rstrip('.')
    return f"{value:.3f}".rstrip('0').rstrip('.')


def render_summary_lines(result: ProcessingResult) -> list[str]:
    """The three counter lines, in inserted / skipped / failed order.

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     file_name="members.csv", inserted=305, skipped=2, failed=1,
        ...     rows_read=308, start_time=t, end_time=t,
        ...     elapsed_seconds=0.0, throughput_rows_per_sec=0.0,
        ... )
        >>> render_summary_lines(result)
        ['inserted=305', 'skipped=2', 'failed=1']
    """
    return [
        f"inserted={result.inserted}",
        f"skipped={result.skipped}",
        f"failed={result.failed}",
    ]


def render_metrics_line(result: ProcessingResult) -> str:
    line = (
        f"file={result.file_name} "
        f"rows_read={result.rows_read} "
        f"batches={result.total_batches} "
        f"degraded_batches={result.degraded_batches} "
        f"elapsed_sec={format_number(result.elapsed_seconds)} "
        f"throughput_rps={format_number(result.throughput_rows_per_sec)}"
    )
    if result.total_batches:
        line += (
            f" avg_batch_sec={format_number(result.avg_batch_seconds)}"
            f" p95_batch_sec={format_number(result.p95_batch_seconds)}"
        )
    return line
