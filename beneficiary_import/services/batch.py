from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any

from ..crm.store import EntityStore
from ..excel.extract import ExtractionError, extract
from ..excel.headers import EMAIL_FIELD, resolve
from ..excel.normalize import cell_text, normalize
from ..excel.validation import MSG_EMAIL_COLUMN_MISSING, data_row_number, split_invalid_rows, validate
from ..logging.error_log import (
    BATCH_ABORTED,
    EXTRACTION_ERROR,
    RECONCILIATION_ERROR,
    UNEXPECTED_ERROR,
    VALIDATION_ERROR,
    ErrorLogBuffer,
    ErrorRecord,
)
from ..models.column_map import ColumnMap
from ..models.config_models import DealSettings
from ..models.outcome import (
    BatchReport,
    BatchStatus,
    ImportResult,
    ProgressSnapshot,
    ReconcileStep,
    ReconciliationOutcome,
    RowFailure,
)
from ..models.validation_error import ValidationError
from .reconcile import Reconciler
from .summary import render_failure_lines, render_status_line

"""Batch runner: drive every validated row through extraction and reconciliation.

Rows are processed one at a time, in input order. Each row runs inside its
own failure boundary so that one bad row (unreadable date, store rejection,
unexpected exception) is recorded and the batch moves on. Counters are
updated and a ProgressSnapshot is emitted after every row.

import_matrix wraps the whole pipeline for one decoded file:
normalize -> resolve headers -> validate -> run_batch.
"""

__all__ = [
    "ProgressCallback",
    "run_batch",
    "import_matrix",
]

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressSnapshot], None]


def _record(
    error_log: ErrorLogBuffer | None,
    file_name: str,
    row: int,
    email: str,
    error_type: str,
    message: str,
) -> None:
    if error_log is None:
        return
    error_log.append(ErrorRecord.create(file=file_name, row=row, email=email, error_type=error_type, message=message))


def _raw_email(row: Sequence[Any], column_map: ColumnMap) -> str:
    idx = column_map.index_of(EMAIL_FIELD)
    if idx is None or idx >= len(row):
        return ""
    return cell_text(row[idx]).strip()


def run_batch(
    rows: Sequence[Sequence[Any]],
    column_map: ColumnMap,
    store: EntityStore,
    *,
    file_name: str = "",
    deal_settings: DealSettings | None = None,
    on_progress: ProgressCallback | None = None,
    error_log: ErrorLogBuffer | None = None,
    row_numbers: Sequence[int] | None = None,
) -> BatchReport:
    """Reconcile every data row and aggregate the results.

    Args:
        rows: Normalized data rows (header row excluded)
        column_map: Columns resolved from the header row
        store: CRM entity store
        file_name: Source file name, used in the error log
        deal_settings: Fixed deal values; defaults when omitted
        on_progress: Called with a ProgressSnapshot after every row
        error_log: Receives one record per failed row
        row_numbers: Spreadsheet row number of each entry in ``rows``;
            defaults to consecutive numbers starting at 2

    Returns:
        BatchReport. An unresolved email column aborts the batch before any
        row is touched (status ABORTED, processed=0).
    """
    started_at = datetime.now(UTC)
    total = len(rows)
    if row_numbers is None:
        row_numbers = [data_row_number(i) for i in range(total)]
    elif len(row_numbers) != total:
        raise ValueError(f"row_numbers has {len(row_numbers)} entries for {total} rows")

    if not column_map.is_resolved(EMAIL_FIELD):
        logger.error("batch aborted: %s", MSG_EMAIL_COLUMN_MISSING)
        _record(error_log, file_name, 0, "", BATCH_ABORTED, MSG_EMAIL_COLUMN_MISSING)
        finished_at = datetime.now(UTC)
        return BatchReport(
            status=BatchStatus.ABORTED,
            total=total,
            processed=0,
            succeeded=0,
            failed=0,
            started_at=started_at,
            finished_at=finished_at,
            elapsed_seconds=(finished_at - started_at).total_seconds(),
            error=MSG_EMAIL_COLUMN_MISSING,
        )

    reconciler = Reconciler(store, deal_settings)
    outcomes: list[ReconciliationOutcome] = []
    failures: list[RowFailure] = []
    processed = succeeded = failed = 0

    for row, row_number in zip(rows, row_numbers):
        email = _raw_email(row, column_map)
        error_type = RECONCILIATION_ERROR
        try:
            record = extract(row, column_map, row_number)
            outcome = reconciler.reconcile(record)
        except ExtractionError as e:
            error_type = EXTRACTION_ERROR
            outcome = ReconciliationOutcome(
                row_number=row_number,
                email=email,
                success=False,
                failed_step=ReconcileStep.EXTRACT,
                error=str(e),
            )
            logger.debug("row=%d email=%s extraction failed: %s", row_number, email or "N/A", e)
        except Exception as e:
            error_type = UNEXPECTED_ERROR
            outcome = ReconciliationOutcome(
                row_number=row_number,
                email=email,
                success=False,
                error=f"{type(e).__name__}: {e}",
            )
            logger.exception("row=%d email=%s unexpected error", row_number, email or "N/A")

        outcomes.append(outcome)
        processed += 1
        if outcome.success:
            succeeded += 1
        else:
            failed += 1
            message = outcome.error or "unknown error"
            failures.append(RowFailure(row_number=row_number, email=outcome.email, message=message))
            _record(error_log, file_name, row_number, outcome.email, error_type, message)

        snapshot = ProgressSnapshot(
            processed=processed,
            total=total,
            succeeded=succeeded,
            failed=failed,
            current_email=outcome.email,
        )
        logger.debug(render_status_line(snapshot))
        if on_progress is not None:
            on_progress(snapshot)

    finished_at = datetime.now(UTC)
    report = BatchReport(
        status=BatchStatus.COMPLETED,
        total=total,
        processed=processed,
        succeeded=succeeded,
        failed=failed,
        started_at=started_at,
        finished_at=finished_at,
        elapsed_seconds=(finished_at - started_at).total_seconds(),
        failures=failures,
        outcomes=outcomes,
    )
    logger.info(
        render_status_line(ProgressSnapshot(processed=processed, total=total, succeeded=succeeded, failed=failed))
    )
    for line in render_failure_lines(report):
        logger.warning(line)
    return report


def _record_validation_errors(
    error_log: ErrorLogBuffer | None, file_name: str, errors: Sequence[ValidationError]
) -> None:
    for e in errors:
        logger.warning("row=%d email=%s %s", e.row, e.email or "N/A", e.message)
        _record(error_log, file_name, e.row, e.email, VALIDATION_ERROR, e.message)


def import_matrix(
    matrix: Sequence[Sequence[Any]],
    store: EntityStore,
    *,
    file_name: str = "",
    deal_settings: DealSettings | None = None,
    on_progress: ProgressCallback | None = None,
    error_log: ErrorLogBuffer | None = None,
    strip_invalid: bool = False,
) -> ImportResult:
    """Run one decoded spreadsheet through the full pipeline.

    Validation errors block the batch unless ``strip_invalid`` is set, in
    which case the offending rows are set aside (``ImportResult.invalid_rows``)
    and the remaining rows are imported under their original row numbers. A
    missing email column always blocks.
    """
    rows = normalize(matrix)
    column_map = resolve(rows[0] if rows else [])
    errors = validate(rows, column_map)
    if errors:
        _record_validation_errors(error_log, file_name, errors)
        file_level = any(e.is_file_level for e in errors)
        if file_level or not strip_invalid:
            logger.error("validation found %d error(s); import blocked", len(errors))
            _, invalid = split_invalid_rows(rows, errors)
            return ImportResult(
                column_map=column_map,
                validation_errors=errors,
                invalid_rows=invalid if len(invalid) > 1 else [],
            )

    valid, invalid = split_invalid_rows(rows, errors)
    bad_rows = {e.row for e in errors}
    kept_numbers = [
        data_row_number(i) for i in range(len(rows) - 1) if data_row_number(i) not in bad_rows
    ]
    if errors:
        logger.info("set aside %d invalid row(s); importing %d", len(invalid) - 1, len(kept_numbers))

    report = run_batch(
        valid[1:],
        column_map,
        store,
        file_name=file_name,
        deal_settings=deal_settings,
        on_progress=on_progress,
        error_log=error_log,
        row_numbers=kept_numbers,
    )
    return ImportResult(
        column_map=column_map,
        validation_errors=errors,
        invalid_rows=invalid if len(invalid) > 1 else [],
        report=report,
    )
