from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.outcome import ProgressSnapshot

"""Row progress display with tqdm (TTY only).

The batch runner reports a ProgressSnapshot after every row; ProgressTracker
is the CLI's consumer of those snapshots. In non-TTY environments (CI, piped
output) no bar is drawn to avoid ANSI control sequence spam.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and a progress bar should be drawn."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress bar over the rows of one batch.

    Usable directly as the batch runner's ``on_progress`` callback.
    """

    def __init__(self, total_rows: int, *, description: str = "Importing rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.last_snapshot: ProgressSnapshot | None = None

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        self.update(snapshot)

    def update(self, snapshot: ProgressSnapshot) -> None:
        """Advance the bar to ``snapshot.processed`` and show the running totals."""
        previous = self.last_snapshot.processed if self.last_snapshot else 0
        self.last_snapshot = snapshot
        if self.enabled and self.pbar is not None:
            # rows set aside by validation shrink the batch after the bar was created
            if self.pbar.total != snapshot.total:
                self.pbar.total = snapshot.total
                self.pbar.refresh()
            self.pbar.update(snapshot.processed - previous)
            self.pbar.set_postfix(success=snapshot.succeeded, failed=snapshot.failed)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
