from __future__ import annotations

import numbers
from collections.abc import Sequence
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd

from ..models.beneficiary import Address, BeneficiaryRecord
from ..models.column_map import ColumnMap
from .headers import EMAIL_FIELD, EQUIPMENT_FLAG_FIELDS, MissingEmailColumnError
from .normalize import cell_text, is_empty_cell

"""Field extraction: one normalized row + ColumnMap -> BeneficiaryRecord.

Missing columns never fail extraction; they yield empty values. The only
row-level failures are an empty email and a date that cannot be read.

Date cells come in three shapes:
- a spreadsheet serial day count (1900 date system, numeric cell)
- a datetime/date object (xlsx cell formatted as a date)
- free text ("01/15/2024", "2024-01-15")
All three are reduced to a calendar date without consulting the local clock,
so the same cell gives the same day whatever the process timezone is.
"""

__all__ = [
    "ExtractionError",
    "extract",
    "parse_flag",
    "split_name",
    "serial_to_date",
    "parse_date",
]

# Day 0 of the 1900 date system. Serial 1 is 1900-01-01.
_SERIAL_EPOCH = date(1899, 12, 31)
# Serial 60 is the nonexistent 1900-02-29; later serials are shifted by one day.
_PHANTOM_LEAP_SERIAL = 60


class ExtractionError(Exception):
    """Row-level failure while building a BeneficiaryRecord."""


def parse_flag(value: Any) -> bool:
    """Closed two-value coercion: only the text "true" (any case) is True."""
    return cell_text(value).lower() == "true"


def split_name(full_name: str) -> tuple[str, str]:
    """Split a full name into (first, last).

    Two tokens are first/last. With more tokens the last two form the last
    name (paternal + maternal surname) and the rest the first name. A single
    token is kept whole as the first name.
    """
    tokens = full_name.split()
    if len(tokens) > 2:
        return " ".join(tokens[:-2]), " ".join(tokens[-2:])
    if len(tokens) == 2:
        return tokens[0], tokens[1]
    return full_name.strip(), ""


def serial_to_date(serial: float) -> date:
    """Convert a spreadsheet serial day count to a calendar date.

    The fractional part (time of day) is dropped.
    """
    days = int(serial)
    if days < 1:
        raise ExtractionError(f"invalid date serial: {serial}")
    if days > _PHANTOM_LEAP_SERIAL:
        days -= 1
    try:
        return _SERIAL_EPOCH + timedelta(days=days)
    except OverflowError as e:
        raise ExtractionError(f"invalid date serial: {serial}") from e


def parse_date(value: Any, column: str = "Date Assigned") -> date | None:
    """Normalize a date cell; empty cells give None.

    Raises:
        ExtractionError: non-empty value that is not a readable date
    """
    if is_empty_cell(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return serial_to_date(float(value))

    text = cell_text(value).strip()
    try:
        ts = pd.to_datetime(text)
    except (ValueError, TypeError, OverflowError) as e:
        raise ExtractionError(f'invalid date format in column "{column}": {text}') from e
    if ts is pd.NaT:
        raise ExtractionError(f'invalid date format in column "{column}": {text}')
    # tz-aware values keep the calendar day written in the cell
    return date(ts.year, ts.month, ts.day)


def _text(row: Sequence[Any], column_map: ColumnMap, name: str) -> str:
    idx = column_map.index_of(name)
    if idx is None or idx >= len(row):
        return ""
    return cell_text(row[idx]).strip()


def _cell(row: Sequence[Any], column_map: ColumnMap, name: str) -> Any:
    idx = column_map.index_of(name)
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def extract(row: Sequence[Any], column_map: ColumnMap, row_number: int) -> BeneficiaryRecord:
    """Build the BeneficiaryRecord for one data row.

    Args:
        row: Normalized row cells
        column_map: Columns resolved from the header row
        row_number: Spreadsheet row number (header row = 1)

    Raises:
        MissingEmailColumnError: email column unresolved (file-level)
        ExtractionError: empty email or unreadable date (row-level)
    """
    if not column_map.is_resolved(EMAIL_FIELD):
        raise MissingEmailColumnError()

    email = _text(row, column_map, EMAIL_FIELD)
    if not email:
        raise ExtractionError("email required")

    date_assigned = parse_date(
        _cell(row, column_map, "date_assigned"),
        column=column_map.header_of("date_assigned") or "Date Assigned",
    )

    full_name = _text(row, column_map, "full_name")
    first_name, last_name = split_name(full_name)

    equipment = {name: parse_flag(_cell(row, column_map, name)) for name in EQUIPMENT_FLAG_FIELDS}

    return BeneficiaryRecord(
        row_number=row_number,
        email=email,
        full_name=full_name,
        first_name=first_name,
        last_name=last_name,
        program_number=_text(row, column_map, "program_number"),
        phone=_text(row, column_map, "phone"),
        alternate_phone=_text(row, column_map, "alternate_phone"),
        latitude=_text(row, column_map, "latitude"),
        longitude=_text(row, column_map, "longitude"),
        installation=Address(
            street=_text(row, column_map, "street"),
            city=_text(row, column_map, "city"),
            municipality=_text(row, column_map, "municipality"),
            zip_code=_text(row, column_map, "zip_code"),
        ),
        mailing=Address(
            street=_text(row, column_map, "mailing_street"),
            city=_text(row, column_map, "mailing_city"),
            municipality=_text(row, column_map, "mailing_municipality"),
            zip_code=_text(row, column_map, "mailing_zip_code"),
        ),
        construction_year=_text(row, column_map, "construction_year"),
        house_age=_text(row, column_map, "house_age"),
        roof_type=_text(row, column_map, "roof_type"),
        roof_material=_text(row, column_map, "roof_material"),
        geographic_eligibility=_text(row, column_map, "geographic_eligibility"),
        disability=_text(row, column_map, "disability"),
        medical_equipment_other=_text(row, column_map, "medical_equipment_other"),
        date_assigned=date_assigned,
        equipment=equipment,
    )
