from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from ..models.column_map import ColumnMap
from ..models.validation_error import FILE_LEVEL_ROW, ValidationError
from .headers import EMAIL_FIELD, resolve
from .normalize import Matrix, cell_text

"""Pre-import validation of a normalized matrix.

All rows are checked and every defect is reported in one pass. A file whose
email column cannot be resolved yields a single file-level error and no
per-row checks. The caller decides whether to block the import; the CLI
blocks while any error exists and can strip offending rows into a separate
workbook for correction.
"""

__all__ = [
    "EMAIL_PATTERN",
    "MSG_EMAIL_COLUMN_MISSING",
    "MSG_EMAIL_REQUIRED",
    "MSG_EMAIL_INVALID",
    "is_valid_email",
    "validate",
    "data_row_number",
    "split_invalid_rows",
]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MSG_EMAIL_COLUMN_MISSING = "email column not found in headers"
MSG_EMAIL_REQUIRED = "email required"
MSG_EMAIL_INVALID = "invalid email format"


def is_valid_email(value: str) -> bool:
    return EMAIL_PATTERN.match(value.strip()) is not None


def data_row_number(data_index: int) -> int:
    """Spreadsheet row number of the ``data_index``-th data row (header row = 1)."""
    return data_index + 2


def validate(matrix: Sequence[Sequence[Any]], column_map: ColumnMap | None = None) -> list[ValidationError]:
    """Check every data row of ``matrix`` and return all defects found.

    Args:
        matrix: Normalized matrix, row 0 being the header row
        column_map: Resolved columns; resolved from the header row when omitted

    Returns:
        Errors in row order; empty when the matrix may be imported
    """
    errors: list[ValidationError] = []
    if len(matrix) <= 1:
        return errors
    if column_map is None:
        column_map = resolve(matrix[0])

    email_idx = column_map.index_of(EMAIL_FIELD)
    if email_idx is None:
        errors.append(ValidationError(row=FILE_LEVEL_ROW, email="", message=MSG_EMAIL_COLUMN_MISSING))
        return errors

    for i, row in enumerate(matrix[1:]):
        row_number = data_row_number(i)
        email = cell_text(row[email_idx]) if email_idx < len(row) else ""
        if email.strip() == "":
            errors.append(ValidationError(row=row_number, email="", message=MSG_EMAIL_REQUIRED))
        elif not is_valid_email(email):
            errors.append(ValidationError(row=row_number, email=email, message=MSG_EMAIL_INVALID))
    return errors


def split_invalid_rows(matrix: Matrix, errors: Sequence[ValidationError]) -> tuple[Matrix, Matrix]:
    """Separate rows named in ``errors`` from the rest.

    Both returned matrices keep the original header row. The second one
    contains only the offending rows, in their original order, ready to be
    written out for correction and re-upload. File-level errors name no row
    and are ignored here.
    """
    if not matrix:
        return [], []
    bad_rows = {e.row for e in errors if not e.is_file_level}
    header = list(matrix[0])
    valid: Matrix = [header]
    invalid: Matrix = [list(header)]
    for i, row in enumerate(matrix[1:]):
        if data_row_number(i) in bad_rows:
            invalid.append(list(row))
        else:
            valid.append(list(row))
    return valid, invalid
