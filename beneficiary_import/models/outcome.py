from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .column_map import ColumnMap
from .validation_error import ValidationError

"""Reconciliation outcome and batch report models.

ReconciliationOutcome is produced once per processed row by the reconciliation
service. The batch runner accumulates outcomes into a BatchReport and emits a
ProgressSnapshot after every row.
"""

__all__ = [
    "ReconcileStep",
    "ReconciliationOutcome",
    "RowFailure",
    "BatchStatus",
    "BatchReport",
    "ProgressSnapshot",
    "ImportResult",
]


class ReconcileStep(Enum):
    """Steps of the per-row create-or-reuse sequence.

    Order: lookup -> (create account -> create contact | create account ->
    link contact | reuse) -> create equipment profile -> create deal
    """
    EXTRACT = "extract"
    LOOKUP = "lookup"
    CREATE_ACCOUNT = "create_account"
    CREATE_CONTACT = "create_contact"
    LINK_CONTACT = "link_contact"
    CREATE_EQUIPMENT_PROFILE = "create_equipment_profile"
    CREATE_DEAL = "create_deal"


@dataclass(frozen=True)
class ReconciliationOutcome:
    """Result of reconciling one row against the store."""
    row_number: int
    email: str
    success: bool
    account_id: str | None = None
    contact_id: str | None = None
    equipment_profile_id: str | None = None
    deal_id: str | None = None
    account_created: bool = False
    contact_created: bool = False
    contact_linked: bool = False  # existing contact updated to point at a new account
    failed_step: ReconcileStep | None = None
    error: str | None = None


@dataclass(frozen=True)
class RowFailure:
    """Itemized failure line shown after a batch."""
    row_number: int
    email: str
    message: str


class BatchStatus(Enum):
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class BatchReport:
    """Aggregated result of one batch run."""
    status: BatchStatus
    total: int
    processed: int
    succeeded: int
    failed: int
    started_at: datetime
    finished_at: datetime
    elapsed_seconds: float
    failures: list[RowFailure] = field(default_factory=list)
    outcomes: list[ReconciliationOutcome] = field(default_factory=list)
    error: str | None = None  # top-level reason when status is ABORTED

    @property
    def all_succeeded(self) -> bool:
        return self.status is BatchStatus.COMPLETED and self.failed == 0


@dataclass(frozen=True)
class ProgressSnapshot:
    """Running counters after a row; the only intermediate state a batch exposes."""
    processed: int
    total: int
    succeeded: int
    failed: int
    current_email: str = ""

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 1.0
        return self.processed / self.total

    @property
    def percent(self) -> int:
        return round(self.fraction * 100)


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one file run through validation and, if allowed, the batch.

    ``report`` is None when validation blocked the import. ``invalid_rows``
    holds the header plus every row rejected by validation (empty when none).
    """
    column_map: ColumnMap
    validation_errors: list[ValidationError] = field(default_factory=list)
    invalid_rows: list[list[Any]] = field(default_factory=list)
    report: BatchReport | None = None

    @property
    def blocked(self) -> bool:
        return self.report is None
