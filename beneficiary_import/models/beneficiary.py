from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping

"""BeneficiaryRecord model for the beneficiary import tool.

A BeneficiaryRecord is the typed, per-row view of one spreadsheet row after
column resolution and field extraction. It is built fresh for every row,
never mutated, and handed to the reconciliation service exactly once.
"""

__all__ = [
    "Address",
    "BeneficiaryRecord",
]


@dataclass(frozen=True)
class Address:
    """Postal address block (installation site or mailing address)."""
    street: str = ""  # "House Number and Street Name"
    city: str = ""
    municipality: str = ""
    zip_code: str = ""


@dataclass(frozen=True)
class BeneficiaryRecord:
    """Semantic fields of one beneficiary row.

    Text fields are always strings (empty when the column is missing or the
    cell is blank). ``equipment`` maps flag field names to booleans in the
    fixed order of the equipment flag table.
    """
    row_number: int  # 1-based spreadsheet row (header row = 1)
    email: str
    full_name: str = ""
    first_name: str = ""
    last_name: str = ""
    program_number: str = ""  # "Number" column (DOE id)
    phone: str = ""
    alternate_phone: str = ""
    latitude: str = ""
    longitude: str = ""
    installation: Address = field(default_factory=Address)
    mailing: Address = field(default_factory=Address)
    # Housing eligibility
    construction_year: str = ""
    house_age: str = ""
    roof_type: str = ""
    roof_material: str = ""
    geographic_eligibility: str = ""
    # Disability questionnaire (free text)
    disability: str = ""
    medical_equipment_other: str = ""
    date_assigned: date | None = None
    equipment: Mapping[str, bool] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """First and last name joined, used for account / deal / profile names."""
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def date_assigned_iso(self) -> str:
        return self.date_assigned.isoformat() if self.date_assigned else ""
