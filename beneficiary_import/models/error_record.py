from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

Each record describes one failed or rejected row. ``row`` is the spreadsheet
row number (header row = 1); 0 marks a file-level error where no single row
is to blame.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Source spreadsheet name
        row: Row number (header row = 1). 0 for file-level errors
        email: Email of the affected row, empty if unknown
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Error description (store message, validation message, ...)
    """
    timestamp: str
    file: str
    row: int
    email: str
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, email: str, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            email=email,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize to a single JSON line with exactly the dataclass keys."""
        return json.dumps(asdict(self), ensure_ascii=False)
