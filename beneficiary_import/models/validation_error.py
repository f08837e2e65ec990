from __future__ import annotations

from dataclasses import dataclass

"""ValidationError model (row-level or file-level input defect)."""

__all__ = [
    "ValidationError",
    "FILE_LEVEL_ROW",
]

# Row number used for file-level defects (e.g. email column missing)
FILE_LEVEL_ROW = 0


@dataclass(frozen=True)
class ValidationError:
    """One input defect found before import.

    Attributes:
        row: Spreadsheet row number (header row = 1). ``FILE_LEVEL_ROW`` (0) for file-level errors
        email: Offending email value, empty when missing
        message: Human-readable description
    """
    row: int
    email: str
    message: str

    @property
    def is_file_level(self) -> bool:
        return self.row == FILE_LEVEL_ROW
