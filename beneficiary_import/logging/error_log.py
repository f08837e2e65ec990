from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Error log buffering.

- JSON Lines, fixed schema (ErrorRecord keys only)
- one file per run: `<logs_dir>/errors-YYYYMMDD-HHMMSS.log` (UTC), created on first flush
- records are buffered in memory and written in one go at the end of a run
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "VALIDATION_ERROR",
    "EXTRACTION_ERROR",
    "RECONCILIATION_ERROR",
    "UNEXPECTED_ERROR",
    "BATCH_ABORTED",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"

VALIDATION_ERROR = "VALIDATION_ERROR"
EXTRACTION_ERROR = "EXTRACTION_ERROR"
RECONCILIATION_ERROR = "RECONCILIATION_ERROR"
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"
BATCH_ABORTED = "BATCH_ABORTED"


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush appends JSON Lines.

    Single-threaded use only (rows are processed serially).
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the log path, or None when nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
