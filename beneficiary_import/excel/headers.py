from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ..models.column_map import ColumnMap

"""Header resolution: free-text spreadsheet headers -> semantic field slots.

Each semantic field owns one FieldRule: a set of substrings the lower-cased
header must contain and a set it must not contain. Rules are evaluated once
per file. For every field the first header (left to right) that satisfies its
rule wins; fields with no matching header stay unresolved and degrade to
empty values downstream. Only the email column is mandatory.
"""

__all__ = [
    "FieldRule",
    "COLUMN_RULES",
    "EQUIPMENT_FLAG_FIELDS",
    "EMAIL_FIELD",
    "StructuralError",
    "MissingEmailColumnError",
    "resolve",
    "header_text",
]

logger = logging.getLogger(__name__)

EMAIL_FIELD = "email"


class StructuralError(Exception):
    """File-level defect that prevents any row from being processed."""


class MissingEmailColumnError(StructuralError):
    """Raised when no header satisfies the email column rule."""

    def __init__(self, message: str = "email column not found in headers") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class FieldRule:
    """Keyword predicate for one semantic field.

    A header matches when its lower-cased text contains every ``required``
    substring and none of the ``forbidden`` ones.
    """
    name: str
    required: tuple[str, ...]
    forbidden: tuple[str, ...] = ()

    def matches(self, header: str) -> bool:
        text = header.lower()
        if not all(s in text for s in self.required):
            return False
        return not any(s in text for s in self.forbidden)


_MAILING = ("mailing",)

# Identity, location, housing and questionnaire columns
_RECORD_RULES: tuple[FieldRule, ...] = (
    FieldRule("date_assigned", ("date assigned",)),
    FieldRule("program_number", ("number",), ("phone", "house number")),
    FieldRule("full_name", ("name",), ("street name",)),
    FieldRule("latitude", ("latitude",)),
    FieldRule("longitude", ("longitude",)),
    FieldRule("phone", ("phone number",), ("alternate",)),
    FieldRule("alternate_phone", ("alternate phone",)),
    FieldRule(EMAIL_FIELD, ("homeowner", "email")),
    # installation site
    FieldRule("municipality", ("municipality",), _MAILING),
    FieldRule("street", ("house number and street name",), _MAILING),
    FieldRule("city", ("city",), _MAILING),
    FieldRule("zip_code", ("zip code",), _MAILING),
    # mailing address
    FieldRule("mailing_street", ("house number and street name", "mailing")),
    FieldRule("mailing_city", ("city", "mailing")),
    FieldRule("mailing_municipality", ("municipality", "mailing")),
    FieldRule("mailing_zip_code", ("zip code", "mailing")),
    # housing eligibility
    FieldRule("construction_year", ("construction year",)),
    FieldRule("house_age", ("50 years of age or older",)),
    FieldRule("roof_type", ("flat or inclined/pitched roof",)),
    FieldRule("roof_material", ("cement/concrete or metal/zinc",)),
    FieldRule("geographic_eligibility", ("geographic eligibility",)),
    # disability questionnaire
    FieldRule("disability", ("energy dependent disability individual",)),
    FieldRule("medical_equipment_other", ("medical equipment is not listed above",)),
)

# Boolean columns carried on the equipment profile sub-record
_EQUIPMENT_RULES: tuple[FieldRule, ...] = (
    FieldRule("energy_dependent_eligibility", ("energy dependent disability eligibility",)),
    FieldRule("no_consent_pictures", ("did not consent to pictures",)),
    FieldRule("air_conditioner", ("air conditioner",)),
    FieldRule("air_purifier", ("air purifier",)),
    FieldRule("air_mattress", ("air mattress",)),
    FieldRule("asthma_therapy_machine", ("asthma therapy machine",)),
    FieldRule("at_home_dialysis_machine", ("at home dialysis machine",)),
    FieldRule("bipap_machine", ("bipap",)),
    FieldRule("sleep_apnea_machine", ("sleep apnea machine",)),
    FieldRule("dehumidifier", ("dehumidifier",)),
    FieldRule("dialysis_machine", ("dialysis machine",), ("at home",)),
    FieldRule("electric_crane", ("electric crane",)),
    FieldRule("physical_therapy_machine", ("electric machine for physical therapy",)),
    FieldRule("power_lift_recliner", ("power lift recliner",)),
    FieldRule("vital_signs_monitor", ("vital signs monitor",)),
    FieldRule("electric_bed", ("electric bed",)),
    FieldRule("electric_scooter", ("electric scooter",)),
    FieldRule("electric_wheelchair", ("electric wheelchair",)),
    FieldRule("enteral_feeding_pump", ("enteral feeding tube pump",)),
    FieldRule("enteral_feeding_machine", ("enteral feeding machine",)),
    FieldRule("external_defibrillator", ("external defibrillator",)),
    FieldRule("fft_machine", ("fft electric machine",)),
    FieldRule("fan", ("fan for temperature control",)),
    FieldRule("hearing_aid_pods", ("hearing aid pods",)),
    FieldRule("humidifier", ("humidifier",), ("dehumidifier",)),
    FieldRule("implanted_cardiac_device", ("implanted cardiac devices",)),
    FieldRule("mechanical_ventilator", ("mechanical ventilator",)),
    FieldRule("refrigerated_medications", ("medications that require refrigeration",)),
    FieldRule("oxygen_concentrator", ("concentrator",)),
    FieldRule("neurostimulator_implant", ("neurostimulator implant",)),
    FieldRule("spinal_cord_stimulator", ("spinal cord",)),
    FieldRule("rvad", ("right ventricular assistive device",)),
    FieldRule("suction_pump_machine", ("suction pump machine",)),
    FieldRule("suction_pump", ("suction pump",), ("machine",)),
    FieldRule("deaf_communication", ("deaf/hard of hearing",)),
    FieldRule("artificial_heart", ("(tah)",)),
    FieldRule("vaporizer", ("vaporizer",)),
    FieldRule("bivad", ("bi-ventricular assistive device",)),
    FieldRule("iv_infusion_pump", ("infusion pump",)),
)

COLUMN_RULES: tuple[FieldRule, ...] = _RECORD_RULES + _EQUIPMENT_RULES
EQUIPMENT_FLAG_FIELDS: tuple[str, ...] = tuple(r.name for r in _EQUIPMENT_RULES)


def header_text(value: Any) -> str:
    """Render a header cell as text (blank cells become an empty string)."""
    if value is None:
        return ""
    return str(value).strip()


def resolve(headers: Sequence[Any], rules: Sequence[FieldRule] = COLUMN_RULES) -> ColumnMap:
    """Build the ColumnMap for a header row.

    Resolution looks at header text only. The result depends solely on the
    header sequence and the rule table, so the same headers always give the
    same map.
    """
    texts = tuple(header_text(h) for h in headers)
    indices: dict[str, int | None] = {}
    for rule in rules:
        indices[rule.name] = next(
            (i for i, text in enumerate(texts) if text and rule.matches(text)),
            None,
        )
    column_map = ColumnMap(indices=indices, headers=texts)
    if column_map.unresolved:
        logger.debug("unresolved columns: %s", column_map.unresolved)
    return column_map
