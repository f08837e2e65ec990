from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..crm import fields as crm_fields
from ..crm.store import (
    ACCOUNT,
    CONTACT,
    DEAL,
    EQUIPMENT_PROFILE,
    EntityStore,
    StoreError,
    StoreRecord,
    WriteResult,
)
from ..models.beneficiary import BeneficiaryRecord
from ..models.config_models import DealSettings
from ..models.outcome import ReconcileStep, ReconciliationOutcome

"""Per-row reconciliation against the CRM store.

One row runs a fixed chain of steps, each of which either succeeds and
records the ids it produced or fails and ends the row:

    LOOKUP
      -> no contact:              CREATE_ACCOUNT -> CREATE_CONTACT
      -> contact without account: CREATE_ACCOUNT -> LINK_CONTACT
      -> contact with account:    (reuse, no writes)
    -> CREATE_EQUIPMENT_PROFILE
    -> CREATE_DEAL

Entities written by earlier steps stay in the store when a later step fails;
there is no rollback. The equipment profile and the deal are created fresh
for every row, so re-importing a row appends a new profile and deal to the
reused contact/account.
"""

__all__ = [
    "StepFailed",
    "Reconciler",
]

logger = logging.getLogger(__name__)

_STEP_LABELS: dict[ReconcileStep, str] = {
    ReconcileStep.LOOKUP: "Contact search failed",
    ReconcileStep.CREATE_ACCOUNT: "Failed to create account",
    ReconcileStep.CREATE_CONTACT: "Failed to create contact",
    ReconcileStep.LINK_CONTACT: "Failed to link contact to account",
    ReconcileStep.CREATE_EQUIPMENT_PROFILE: "Failed to create equipment profile",
    ReconcileStep.CREATE_DEAL: "Failed to create deal",
}


class StepFailed(Exception):
    """A reconciliation step could not complete."""

    def __init__(self, step: ReconcileStep, reason: str) -> None:
        self.step = step
        self.reason = reason
        super().__init__(f"{_STEP_LABELS.get(step, step.value)}: {reason}")


@dataclass
class _RowState:
    account_id: str | None = None
    contact_id: str | None = None
    equipment_profile_id: str | None = None
    deal_id: str | None = None
    account_created: bool = False
    contact_created: bool = False
    contact_linked: bool = False


class Reconciler:
    """Runs the create-or-reuse chain for one BeneficiaryRecord at a time.

    Holds no per-row state between calls; the only shared thing is the store.
    """

    def __init__(self, store: EntityStore, deal_settings: DealSettings | None = None) -> None:
        self.store = store
        self.deal_settings = deal_settings or DealSettings()

    def reconcile(self, record: BeneficiaryRecord) -> ReconciliationOutcome:
        state = _RowState()
        try:
            contact = self.lookup(record)
            self.resolve_account(record, contact, state)
            self.create_equipment_profile(record, state)
            self.create_deal(record, state)
        except StepFailed as e:
            logger.warning("row=%d email=%s step=%s %s", record.row_number, record.email, e.step.value, e)
            return self._outcome(record, state, failed_step=e.step, error=str(e))
        logger.debug(
            "row=%d email=%s contact=%s account=%s deal=%s",
            record.row_number,
            record.email,
            state.contact_id,
            state.account_id,
            state.deal_id,
        )
        return self._outcome(record, state)

    # --- steps -------------------------------------------------------------

    def lookup(self, record: BeneficiaryRecord) -> StoreRecord | None:
        """Find the existing contact for the record's email, if any."""
        try:
            result = self.store.search_by_email(record.email)
        except StoreError as e:
            raise StepFailed(ReconcileStep.LOOKUP, str(e)) from e
        if result.error:
            raise StepFailed(ReconcileStep.LOOKUP, result.error)
        if not result.found or not result.records:
            return None
        if len(result.records) > 1:
            logger.warning("email=%s matches %d contacts; using the first", record.email, len(result.records))
        return result.records[0]

    def resolve_account(self, record: BeneficiaryRecord, contact: StoreRecord | None, state: _RowState) -> None:
        """Make sure the row has a contact linked to an account."""
        if contact is None:
            state.account_id = self._insert(ReconcileStep.CREATE_ACCOUNT, ACCOUNT, crm_fields.account_fields(record))
            state.account_created = True
            state.contact_id = self._insert(
                ReconcileStep.CREATE_CONTACT,
                CONTACT,
                crm_fields.contact_fields(record, state.account_id),
            )
            state.contact_created = True
            return

        state.contact_id = contact.id
        if contact.linked_account_id:
            state.account_id = contact.linked_account_id
            return

        state.account_id = self._insert(ReconcileStep.CREATE_ACCOUNT, ACCOUNT, crm_fields.account_fields(record))
        state.account_created = True
        result = self._call(
            ReconcileStep.LINK_CONTACT,
            self.store.update,
            CONTACT,
            crm_fields.contact_link_fields(contact.id, state.account_id),
        )
        if not result.success:
            raise StepFailed(ReconcileStep.LINK_CONTACT, result.error or "unknown error")
        state.contact_linked = True

    def create_equipment_profile(self, record: BeneficiaryRecord, state: _RowState) -> None:
        state.equipment_profile_id = self._insert(
            ReconcileStep.CREATE_EQUIPMENT_PROFILE,
            EQUIPMENT_PROFILE,
            crm_fields.equipment_profile_fields(record),
        )

    def create_deal(self, record: BeneficiaryRecord, state: _RowState) -> None:
        if not (state.contact_id and state.account_id and state.equipment_profile_id):
            raise StepFailed(ReconcileStep.CREATE_DEAL, "contact, account and equipment profile ids are required")
        state.deal_id = self._insert(
            ReconcileStep.CREATE_DEAL,
            DEAL,
            crm_fields.deal_fields(
                record,
                contact_id=state.contact_id,
                account_id=state.account_id,
                equipment_profile_id=state.equipment_profile_id,
                settings=self.deal_settings,
            ),
        )

    # --- helpers -----------------------------------------------------------

    def _call(self, step: ReconcileStep, op: Any, entity_type: str, payload: dict[str, Any]) -> WriteResult:
        try:
            return op(entity_type, payload)
        except StoreError as e:
            raise StepFailed(step, str(e)) from e

    def _insert(self, step: ReconcileStep, entity_type: str, payload: dict[str, Any]) -> str:
        result = self._call(step, self.store.insert, entity_type, payload)
        if not result.success:
            raise StepFailed(step, result.error or "unknown error")
        if not result.created_id:
            raise StepFailed(step, "store returned no id")
        return result.created_id

    @staticmethod
    def _outcome(
        record: BeneficiaryRecord,
        state: _RowState,
        failed_step: ReconcileStep | None = None,
        error: str | None = None,
    ) -> ReconciliationOutcome:
        return ReconciliationOutcome(
            row_number=record.row_number,
            email=record.email,
            success=failed_step is None,
            account_id=state.account_id,
            contact_id=state.contact_id,
            equipment_profile_id=state.equipment_profile_id,
            deal_id=state.deal_id,
            account_created=state.account_created,
            contact_created=state.contact_created,
            contact_linked=state.contact_linked,
            failed_step=failed_step,
            error=error,
        )
