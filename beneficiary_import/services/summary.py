from __future__ import annotations

from ..models.outcome import BatchReport, ProgressSnapshot

"""Status / SUMMARY line rendering.

Formats:
    status : Processed {p} of {n} records ({s} succeeded, {f} failed)
    summary: SUMMARY rows={n} success={s} failed={f} status={status} elapsed_sec={e}
    failure: row={r} email={email} error={message}
"""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # avoid scientific notation for very small numbers
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_status_line(snapshot: ProgressSnapshot) -> str:
    """Running status string shown after every row."""
    return (
        f"Processed {snapshot.processed} of {snapshot.total} records "
        f"({snapshot.succeeded} succeeded, {snapshot.failed} failed)"
    )


def render_summary_line(report: BatchReport) -> str:
    """Render the SUMMARY line for a finished (or aborted) batch.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from beneficiary_import.models.outcome import BatchStatus
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> report = BatchReport(
        ...     status=BatchStatus.COMPLETED, total=3, processed=3, succeeded=2, failed=1,
        ...     started_at=t, finished_at=t, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(report)
        'SUMMARY rows=3 success=2 failed=1 status=completed elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={report.total} "
        f"success={report.succeeded} "
        f"failed={report.failed} "
        f"status={report.status.value} "
        f"elapsed_sec={_format_seconds(report.elapsed_seconds)}"
    )


def render_failure_lines(report: BatchReport) -> list[str]:
    """One line per failed row, in row order."""
    return [f"row={f.row_number} email={f.email or 'N/A'} error={f.message}" for f in report.failures]
