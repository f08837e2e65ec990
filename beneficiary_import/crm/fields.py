from __future__ import annotations

from typing import Any

from ..excel.headers import EQUIPMENT_FLAG_FIELDS
from ..models.beneficiary import BeneficiaryRecord
from ..models.config_models import DealSettings

"""Field-name contract for each entity type (Zoho CRM API names).

The names are fixed for every row; values come from the BeneficiaryRecord.
"""

# Lookup field on Contacts pointing at the household account
CONTACT_ACCOUNT_FIELD = "Account_Name"
CONTACT_EMAIL_FIELD = "Email"

EQUIPMENT_API_NAMES: dict[str, str] = {
    "energy_dependent_eligibility": "Energy_Dependent_Disability_Eligibility",
    "no_consent_pictures": "Energy_Dependent_disability_observed_but_homeowner",
    "air_conditioner": "Air_Conditioner_A_C_for_temperature_control",
    "air_purifier": "Air_Purifier",
    "air_mattress": "Air_mattress_for_Bed_Sores_or_Alternating_Air_Pres",
    "asthma_therapy_machine": "Asthma_therapy_machine_or_Nebulizer",
    "at_home_dialysis_machine": "At_home_dialysis_machine",
    "bipap_machine": "Bilevel_positive_airway_pressure_BiPAP_machine",
    "sleep_apnea_machine": "CPAP_BPAP_APAP_or_any_other_Sleep_Apnea_Machine",
    "dehumidifier": "Dehumidifier",
    "dialysis_machine": "Dialysis_Machine",
    "electric_crane": "Electric_Crane",
    "physical_therapy_machine": "Electric_Machine_for_Physical_Therapy",
    "power_lift_recliner": "Electric_Power_Lift_Recliner",
    "vital_signs_monitor": "Electric_Vital_Signs_Monitor",
    "electric_bed": "Electric_bed_equipment_in_the_last_13_months",
    "electric_scooter": "Electric_scooter",
    "electric_wheelchair": "Electric_wheelchair",
    "enteral_feeding_pump": "Enteral_Feeding_Tube_Pump_Machine_Naso_Feeding_M",
    "enteral_feeding_machine": "Enteral_feeding_machine",
    "external_defibrillator": "External_Defibrillator",
    "fft_machine": "FFT_Electric_Machine",
    "fan": "Fan_for_temperature_control",
    "hearing_aid_pods": "Hearing_Aid_Pods_Rechargeable",
    "humidifier": "Humidifier",
    "implanted_cardiac_device": "Implanted_cardiac_devices_that_include_left_ventri",
    "mechanical_ventilator": "Mechanical_Ventilator",
    "refrigerated_medications": "Medications_that_require_refrigeration",
    "oxygen_concentrator": "Oxegen_concentrator_equipment_in_the_past_36_months",
    "neurostimulator_implant": "Rechargeable_Electrical_Neurostimulator_Implant",
    "spinal_cord_stimulator": "Rechargeable_Spinal_Cord_Simulator_SCS",
    "rvad": "Right_Ventricular_assistive_device_RVAD",
    "suction_pump_machine": "Suction_Pump_Machine",
    "suction_pump": "Suction_pump",
    "deaf_communication": "Telephone_Communication_for_Deaf_Hard_of_Hearing",
    "artificial_heart": "Total_artifical_heart_TAH_in_the_past_5_years",
    "vaporizer": "Vaporizer",
    "bivad": "bi_ventricular_assistive_device_BIVAD",
    "iv_infusion_pump": "intravenous_IV_infusion_pump",
}


def account_fields(record: BeneficiaryRecord) -> dict[str, Any]:
    return {"Account_Name": record.display_name}


def contact_fields(record: BeneficiaryRecord, account_id: str) -> dict[str, Any]:
    """New contact linked to ``account_id``, carrying the mailing address."""
    return {
        CONTACT_EMAIL_FIELD: record.email,
        "First_Name": record.first_name,
        "Last_Name": record.last_name,
        "Mailing_Street": record.mailing.street,
        "Mailing_City": record.mailing.city,
        "Mailing_Zip": record.mailing.zip_code,
        "County": record.mailing.municipality,
        CONTACT_ACCOUNT_FIELD: account_id,
    }


def contact_link_fields(contact_id: str, account_id: str) -> dict[str, Any]:
    return {"id": contact_id, CONTACT_ACCOUNT_FIELD: account_id}


def equipment_profile_fields(record: BeneficiaryRecord) -> dict[str, Any]:
    fields: dict[str, Any] = {"Name": record.display_name}
    for name in EQUIPMENT_FLAG_FIELDS:
        fields[EQUIPMENT_API_NAMES[name]] = bool(record.equipment.get(name, False))
    return fields


def deal_fields(
    record: BeneficiaryRecord,
    *,
    contact_id: str,
    account_id: str,
    equipment_profile_id: str,
    settings: DealSettings,
) -> dict[str, Any]:
    """Deal payload: location, eligibility and admin fields plus the program tag."""
    fields: dict[str, Any] = {
        "DOE_ID_Number": record.program_number,
        "Deal_Name": record.display_name,
        "Latitude": record.latitude,
        "Longitude": record.longitude,
        "Customer_Phone": record.phone,
        "Customer_State": record.installation.municipality,
        "Customer_Street": record.installation.street,
        "Customer_Postal_Code": record.installation.zip_code,
        "Customer_City": record.installation.city,
        "Construction_Year": record.construction_year,
        "Is_the_single_dwelling_house_50_yrs_or_older": record.house_age,
        "the_house_have_a_flat_or_inclined_pitched_roof": record.roof_type,
        "Does_the_house_have_roof_type_material_of_Cement_Concrete": record.roof_material,
        "Geographic_Eligibility_Last_Mile_CommunityIndex": record.geographic_eligibility,
        "Is_anyone_eligible_as_an_Energy_Dependent": record.disability,
        "If_your_medical_equipment_is_not_listed_above": record.medical_equipment_other,
        "Upload_of_Med_Device": "",
        "Assigned": record.date_assigned_iso,
        "Contact_Name": contact_id,
        "Account_Name": account_id,
        "Submodule_Comercial": equipment_profile_id,
        "Tipo_Comercial": settings.program_tag,
        "Stage": settings.stage,
    }
    if settings.layout_id:
        fields["Layout"] = {"id": settings.layout_id}
    return fields
