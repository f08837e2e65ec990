from __future__ import annotations

import csv
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from .headers import StructuralError
from .normalize import EMPTY_CELL, Matrix

"""Spreadsheet decoding / encoding with pandas.

read_matrix turns an .xlsx (first sheet) or .csv file into a plain cell
matrix, row 0 being the header row. No header interpretation happens here.
CSV cells are read as text, xlsx cells keep their stored type (numbers,
dates, booleans, text). Blank cells become EMPTY_CELL. Fully blank rows are
dropped.
"""

__all__ = [
    "FileReadError",
    "SUPPORTED_SUFFIXES",
    "read_matrix",
    "write_matrix",
    "write_sample_file",
    "SAMPLE_HEADERS",
    "SAMPLE_ROW",
]

SUPPORTED_SUFFIXES = (".xlsx", ".csv")


class FileReadError(StructuralError):
    """Raised when the input file cannot be decoded into a matrix."""


def _frame_to_matrix(df: pd.DataFrame) -> Matrix:
    matrix: Matrix = []
    for raw in df.itertuples(index=False, name=None):
        row = [EMPTY_CELL if pd.isna(v) else v for v in raw]
        if all(v is EMPTY_CELL or (isinstance(v, str) and v.strip() == "") for v in row):
            continue
        # trailing blanks are trimmed; the normalizer pads rows back to a common width
        while row and row[-1] is EMPTY_CELL:
            row.pop()
        matrix.append(row)
    return matrix


def _read_csv(path: Path) -> pd.DataFrame:
    # rows may be wider than the header row; size the frame by the widest one
    with path.open(encoding="utf-8-sig", newline="") as f:
        width = max((len(row) for row in csv.reader(f)), default=0)
    if width == 0:
        raise pd.errors.EmptyDataError("No columns to parse from file")
    return pd.read_csv(
        path,
        header=None,
        names=list(range(width)),
        encoding="utf-8-sig",
        dtype=str,
        keep_default_na=False,
        na_values=[""],
    )


def read_matrix(path: Path) -> Matrix:
    """Decode ``path`` into a cell matrix.

    Raises:
        FileReadError: unsupported extension, missing file or undecodable content
    """
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise FileReadError(f"unsupported file type '{path.suffix}' (expected .xlsx or .csv)")
    if not path.exists():
        raise FileReadError(f"file not found: {path}")
    try:
        if suffix == ".csv":
            df = _read_csv(path)
        else:
            # first worksheet only
            df = pd.read_excel(path, sheet_name=0, header=None, dtype=object)
    except Exception as e:
        raise FileReadError(f"could not read {path.name}: {e}") from e
    return _frame_to_matrix(df)


def write_matrix(path: Path, matrix: Sequence[Sequence[Any]], sheet_name: str = "Rows with errors") -> Path:
    """Write ``matrix`` (header row first) to .xlsx or .csv."""
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(f"unsupported output type '{path.suffix}'")
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame([list(r) for r in matrix])
    if suffix == ".csv":
        df.to_csv(path, header=False, index=False)
    else:
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=sheet_name[:31], header=False, index=False)
    return path


SAMPLE_HEADERS: tuple[str, ...] = (
    "Date Assigned",
    "Number",
    "Name",
    "Latitude:",
    "Longitude:",
    "Phone number:",
    "Alternate phone number:",
    "Homeowner's Email:",
    "Municipality",
    "House Number and Street Name",
    "City",
    "Zip Code",
    "House Number and Street Name (Mailing)",
    "City (Mailing)",
    "Municipality (Mailing)",
    "Zip Code (Mailing)",
    "Construction Year (enter 4 digit year ex. 1950)",
    "Is the single dwelling house 50 years of age or older?",
    "Does the house have a flat or inclined/pitched roof?",
    "Does the house have roof type material of Cement/Concrete or Metal/Zinc ?",
    "Geographic Eligibility (Last Mile Community",
    "Is anyone in the household eligible as an Energy Dependent Disability Individual",
    "If your medical equipment is not listed above",
    "Air Conditioner (A/C) for temperature control",
    "Air Purifier",
    "Air mattress for Bed Sores or Alternating Air Pressure Mattress",
    "Asthma therapy machine or Nebulizer",
    "At home dialysis machine",
    "Bilevel positive airway pressure (BiPAP) machine",
    "CPAP, BPAP, APAP or any other Sleep Apnea Machine",
    "Dehumidifier",
    "Dialysis Machine",
    "Electric Crane",
    "Electric Machine for Physical Therapy",
    "Electric Power Lift Recliner",
    "Electric Vital Signs Monitor",
    "Electric bed equipment in the last 13 months",
    "Electric scooter",
    "Electric wheelchair",
    "Energy Dependent Disability Eligibility",
    "Energy Dependent disability observed but homeowner did not consent to pictures",
    "Enteral Feeding Tube Pump Machine / Naso Feeding Machine",
    "Enteral feeding machine",
    "External Defibrillator",
    "FFT Electric Machine",
    "Fan for temperature control",
    "Hearing Aid Pods Rechargeable",
    "Humidifier",
    "Implanted cardiac devices that include left ventricular assistive device(LVAD)",
    "Mechanical Ventilator",
    "Medications that require refrigeration",
    "Oxegen concentrator equipment in the past 36 months",
    "Rechargeable Electrical Neurostimulator Implant",
    "Rechargeable Spinal Cord Simulator (SCS)",
    "Right Ventricular assistive device (RVAD)",
    "Suction Pump Machine",
    "Suction pump",
    "Telephone Communication for Deaf/Hard of Hearing",
    "Total artifical heart (TAH) in the past 5 years",
    "Vaporizer",
    "bi-ventricular assistive device (BIVAD)",
    "intravenous (IV) infusion pump",
)

_SAMPLE_LEADING: tuple[str, ...] = (
    "01/15/2024",
    "001",
    "Juan Pérez",
    "18.4655",
    "-66.1057",
    "787-555-0101",
    "787-555-0102",
    "juan.perez@email.com",
    "San Juan",
    "123 Calle Principal",
    "San Juan",
    "00901",
    "123 Calle Principal",
    "San Juan",
    "San Juan",
    "00901",
    "1980",
    "No",
    "Inclined/pitched",
    "No",
    "No",
    "No",
    "N/A",
)

SAMPLE_ROW: tuple[str, ...] = _SAMPLE_LEADING + ("TRUE",) + ("FALSE",) * (
    len(SAMPLE_HEADERS) - len(_SAMPLE_LEADING) - 1
)


def write_sample_file(path: Path) -> Path:
    """Write a template workbook: every recognised header plus one example row."""
    return write_matrix(path, [list(SAMPLE_HEADERS), list(SAMPLE_ROW)], sheet_name="Sample Data")
