from __future__ import annotations

from collections.abc import Sequence
from typing import Any

"""Row normalization: make the cell matrix rectangular.

Decoded spreadsheets drop trailing empty cells, so rows come back with
different lengths. Every row is right-padded to the widest row so that any
resolved column index is valid on any row. Header cells beyond the original
header count get placeholder names ("Column N", 1-based).
"""

__all__ = [
    "EMPTY_CELL",
    "Matrix",
    "cell_text",
    "is_empty_cell",
    "normalize",
    "placeholder_header",
]

# Explicit marker for a cell that was absent or blank in the source
EMPTY_CELL = None

Matrix = list[list[Any]]


def placeholder_header(position: int) -> str:
    """Synthesized header name for 0-based column ``position``."""
    return f"Column {position + 1}"


def normalize(matrix: Sequence[Sequence[Any]]) -> Matrix:
    """Return a padded copy of ``matrix``; the input is left untouched."""
    if not matrix:
        return []
    width = max(len(row) for row in matrix)

    headers = list(matrix[0])
    while len(headers) < width:
        headers.append(placeholder_header(len(headers)))

    rows: Matrix = [headers]
    for raw in matrix[1:]:
        row = list(raw)
        row.extend([EMPTY_CELL] * (width - len(row)))
        rows.append(row)
    return rows


def is_empty_cell(value: Any) -> bool:
    """True for the empty marker, NaN and whitespace-only strings."""
    if value is EMPTY_CELL:
        return True
    if isinstance(value, float) and value != value:  # NaN
        return True
    return isinstance(value, str) and value.strip() == ""


def cell_text(value: Any) -> str:
    """Render a cell value as text.

    Integral floats lose their ".0" (spreadsheets store 1980 as 1980.0),
    booleans become "true"/"false" and empty cells become "".
    """
    if value is EMPTY_CELL:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value != value:  # NaN
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)
