"""Domain models for the beneficiary spreadsheet -> CRM import tool."""

from .beneficiary import Address, BeneficiaryRecord
from .column_map import ColumnMap
from .config_models import DealSettings, ImportConfig, StoreConfig
from .error_record import ErrorRecord
from .outcome import (
    BatchReport,
    BatchStatus,
    ImportResult,
    ProgressSnapshot,
    ReconcileStep,
    ReconciliationOutcome,
    RowFailure,
)
from .validation_error import FILE_LEVEL_ROW, ValidationError

__all__ = [
    # Configuration models
    "DealSettings",
    "ImportConfig",
    "StoreConfig",
    # Row models
    "Address",
    "BeneficiaryRecord",
    "ColumnMap",
    "ValidationError",
    "FILE_LEVEL_ROW",
    # Results
    "ErrorRecord",
    "ReconcileStep",
    "ReconciliationOutcome",
    "RowFailure",
    "BatchStatus",
    "BatchReport",
    "ProgressSnapshot",
    "ImportResult",
]
