from __future__ import annotations

from pathlib import Path

from beneficiary_import.crm.store import ACCOUNT, CONTACT, DEAL, EQUIPMENT_PROFILE
from beneficiary_import.excel.headers import resolve
from beneficiary_import.excel.normalize import normalize
from beneficiary_import.excel.validation import MSG_EMAIL_COLUMN_MISSING, MSG_EMAIL_INVALID, MSG_EMAIL_REQUIRED
from beneficiary_import.logging.error_log import ErrorLogBuffer
from beneficiary_import.models.outcome import BatchStatus, ReconcileStep
from beneficiary_import.services.batch import import_matrix, run_batch


def _rows(headers, make_row, emails):
    matrix = normalize([headers] + [make_row(e) for e in emails])
    return matrix, resolve(matrix[0])


def test_run_batch_all_rows_succeed(store, headers, make_row):
    matrix, cmap = _rows(headers, make_row, ["a@example.com", "b@example.com", "c@example.com"])
    snapshots = []

    report = run_batch(matrix[1:], cmap, store, on_progress=snapshots.append)

    assert report.status is BatchStatus.COMPLETED
    assert (report.total, report.processed, report.succeeded, report.failed) == (3, 3, 3, 0)
    assert report.all_succeeded
    assert report.failures == []
    assert [o.row_number for o in report.outcomes] == [2, 3, 4]
    assert store.count(DEAL) == 3
    # one snapshot per row, counters monotone
    assert [s.processed for s in snapshots] == [1, 2, 3]
    assert snapshots[-1].fraction == 1.0
    assert snapshots[-1].percent == 100
    assert snapshots[0].current_email == "a@example.com"
    assert report.elapsed_seconds >= 0
    assert report.finished_at >= report.started_at


def test_run_batch_continues_after_a_failed_row(flaky_store, headers, make_row):
    matrix, cmap = _rows(headers, make_row, ["a@example.com", "b@example.com"])
    flaky_store.fail_insert_once[DEAL] = "INVALID_DATA"
    log = ErrorLogBuffer(Path("unused"))

    report = run_batch(matrix[1:], cmap, flaky_store, file_name="f.xlsx", error_log=log)

    assert (report.processed, report.succeeded, report.failed) == (2, 1, 1)
    assert not report.all_succeeded
    failure = report.failures[0]
    assert failure.row_number == 2
    assert failure.email == "a@example.com"
    assert failure.message == "Failed to create deal: INVALID_DATA"
    assert report.outcomes[1].success
    # entities of the failed row stay
    assert flaky_store.count(ACCOUNT) == 2
    assert flaky_store.count(DEAL) == 1
    records = log.records
    assert len(records) == 1
    assert records[0].error_type == "RECONCILIATION_ERROR"
    assert records[0].file == "f.xlsx"
    assert records[0].row == 2


def test_run_batch_extraction_failure_is_row_level(store, headers, make_row):
    matrix = normalize([headers, make_row("a@example.com", date_assigned="someday"), make_row("b@example.com")])
    log = ErrorLogBuffer(Path("unused"))

    report = run_batch(matrix[1:], resolve(matrix[0]), store, error_log=log)

    assert (report.succeeded, report.failed) == (1, 1)
    assert report.outcomes[0].failed_step is ReconcileStep.EXTRACT
    assert report.outcomes[0].email == "a@example.com"
    assert "invalid date format" in report.failures[0].message
    assert log.records[0].error_type == "EXTRACTION_ERROR"
    # nothing was written for the bad row
    assert store.count(CONTACT) == 1


def test_run_batch_unexpected_exception_is_contained(flaky_store, headers, make_row):
    matrix, cmap = _rows(headers, make_row, ["a@example.com", "b@example.com"])
    flaky_store.raise_on_insert = RuntimeError("kaboom")
    log = ErrorLogBuffer(Path("unused"))

    report = run_batch(matrix[1:], cmap, flaky_store, error_log=log)

    assert report.status is BatchStatus.COMPLETED
    assert report.failed == 2
    assert report.failures[0].message == "RuntimeError: kaboom"
    assert {r.error_type for r in log.records} == {"UNEXPECTED_ERROR"}


def test_run_batch_aborts_without_email_column(store):
    rows = [["Ana", "x"], ["Luis", "y"]]
    cmap = resolve(["Name", "Other"])
    snapshots = []
    log = ErrorLogBuffer(Path("unused"))

    report = run_batch(rows, cmap, store, on_progress=snapshots.append, error_log=log)

    assert report.status is BatchStatus.ABORTED
    assert report.error == MSG_EMAIL_COLUMN_MISSING
    assert (report.total, report.processed, report.succeeded, report.failed) == (2, 0, 0, 0)
    assert snapshots == []
    assert store.calls == []
    assert log.records[0].error_type == "BATCH_ABORTED"
    assert log.records[0].row == 0


def test_run_batch_empty_rows(store, headers):
    report = run_batch([], resolve(headers), store)
    assert report.status is BatchStatus.COMPLETED
    assert (report.total, report.processed) == (0, 0)


def test_run_batch_explicit_row_numbers(store, headers, make_row):
    matrix, cmap = _rows(headers, make_row, ["a@example.com"])
    report = run_batch(matrix[1:], cmap, store, row_numbers=[7])
    assert report.outcomes[0].row_number == 7


def test_import_matrix_blocks_on_validation_errors(store, headers, make_row):
    matrix = [headers, make_row("a@example.com"), make_row("not-an-email"), make_row("")]
    log = ErrorLogBuffer(Path("unused"))

    result = import_matrix(matrix, store, file_name="f.csv", error_log=log)

    assert result.blocked
    assert result.report is None
    assert [e.row for e in result.validation_errors] == [3, 4]
    assert result.validation_errors[0].message == MSG_EMAIL_INVALID
    assert store.calls == []
    assert [r.error_type for r in log.records] == ["VALIDATION_ERROR", "VALIDATION_ERROR"]
    # offending rows are available for export even when blocked
    assert len(result.invalid_rows) == 3


def test_import_matrix_strip_invalid_keeps_original_row_numbers(store, headers, make_row):
    matrix = [headers, make_row("bad"), make_row("a@example.com"), make_row(""), make_row("b@example.com")]

    result = import_matrix(matrix, store, strip_invalid=True)

    assert not result.blocked
    report = result.report
    assert report is not None
    assert (report.total, report.succeeded) == (2, 2)
    assert [o.row_number for o in report.outcomes] == [3, 5]
    assert result.invalid_rows[0] == headers
    assert [r[4] for r in result.invalid_rows[1:]] == ["bad", ""]


def test_import_matrix_blocked_until_row_without_email_is_removed(store, headers, make_row):
    matrix = [headers, make_row("ana@example.com"), make_row("")]

    blocked = import_matrix(matrix, store)

    assert blocked.blocked
    assert [(e.row, e.message) for e in blocked.validation_errors] == [(3, MSG_EMAIL_REQUIRED)]
    assert store.calls == []

    result = import_matrix(matrix[:2], store)

    assert result.validation_errors == []
    report = result.report
    assert report is not None
    assert (report.total, report.succeeded, report.failed) == (1, 1, 0)
    assert store.count(CONTACT) == 1
    assert store.count(DEAL) == 1


def test_import_matrix_missing_email_column_always_blocks(store):
    matrix = [["Name", "Email"], ["Ana", "ana@example.com"]]
    result = import_matrix(matrix, store, strip_invalid=True)
    assert result.blocked
    assert result.validation_errors[0].is_file_level
    assert result.invalid_rows == []


def test_import_matrix_clean_file(store, headers, make_row):
    matrix = [headers, make_row("a@example.com")]
    result = import_matrix(matrix, store)
    assert result.validation_errors == []
    assert result.invalid_rows == []
    assert result.report is not None and result.report.all_succeeded
    assert store.count(EQUIPMENT_PROFILE) == 1


def test_import_matrix_empty_file_aborts(store):
    result = import_matrix([], store)
    assert result.report is not None
    assert result.report.status is BatchStatus.ABORTED
