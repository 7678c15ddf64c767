# hms_billing/services/billing_ledger.py
"""
Read-through view over the upstream bill collection.

The ledger never patches its state locally: every successful mutation is
followed by a full re-fetch, and the snapshot is replaced wholesale. A
failed re-fetch empties the snapshot instead of leaving stale rows that
would look authoritative.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from hms_billing.core.config import settings
from hms_billing.core.errors import (
    BillNotFound,
    FetchFailure,
    InvalidAmount,
    MissingPatient,
    ValidationError,
)
from hms_billing.schemas.billing import Bill, BillDraft, BillRowOut, BillStatus
from hms_billing.schemas.common import PageOut
from hms_billing.schemas.patient import Patient
from hms_billing.services.billing_math import money2
from hms_billing.services.billing_rules import (
    BillingSummary,
    Reconciliation,
    aggregate,
    classify_status,
    compute_balance,
    find_mismatches,
)
from hms_billing.services.filter_engine import FilterEngine
from hms_billing.services.pdfs.invoice_pdf import InvoiceDocument, build_invoice

logger = logging.getLogger(__name__)

UNKNOWN_PATIENT = "Unknown Patient"

patient_engine: FilterEngine[Patient] = FilterEngine(
    search_fields=lambda p: (p.first_name, p.last_name, p.email, p.phone),
    filter_field=lambda p: p.gender,
)


@dataclass(frozen=True)
class LedgerSnapshot:
    bills: Tuple[Bill, ...] = ()
    patients: Mapping[str, Patient] = field(default_factory=dict)
    fetched_at: Optional[datetime] = None

    @property
    def loaded(self) -> bool:
        return self.fetched_at is not None


def _field_label(loc: Tuple[Any, ...]) -> str:
    return ".".join(str(p) for p in loc) or "__root__"


class BillLedger:

    def __init__(self, source, *, page_size: Optional[int] = None):
        self.source = source
        self.page_size = page_size or settings.BILLING_PAGE_SIZE
        self._snapshot = LedgerSnapshot()

    # -------------------------
    # snapshot
    # -------------------------
    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._snapshot

    @property
    def loaded(self) -> bool:
        return self._snapshot.loaded

    @property
    def bills(self) -> Tuple[Bill, ...]:
        return self._snapshot.bills

    @property
    def patients(self) -> Mapping[str, Patient]:
        return self._snapshot.patients

    def refresh(self) -> LedgerSnapshot:
        try:
            bills = self.source.fetch_bills()
            patients = self.source.fetch_patients()
        except FetchFailure:
            # collection unavailable; never keep serving the old rows
            self._snapshot = LedgerSnapshot()
            raise

        self._snapshot = LedgerSnapshot(
            bills=tuple(bills),
            patients={p.id: p for p in patients},
            fetched_at=datetime.now(timezone.utc),
        )
        logger.info("ledger refreshed bills=%d patients=%d", len(bills),
                    len(self._snapshot.patients))
        return self._snapshot

    def ensure_loaded(self) -> LedgerSnapshot:
        if not self.loaded:
            return self.refresh()
        return self._snapshot

    # -------------------------
    # queries
    # -------------------------
    def lookup_patient_name(self, patient_id: str,
                            snapshot: Optional[LedgerSnapshot] = None) -> str:
        snap = snapshot or self._snapshot
        p = snap.patients.get(patient_id) if patient_id else None
        return p.full_name if p is not None else UNKNOWN_PATIENT

    def _bill_engine(self, snap: LedgerSnapshot) -> FilterEngine[Bill]:
        return FilterEngine(
            search_fields=lambda b: (self.lookup_patient_name(b.patient_id, snap), b.id),
            filter_field=lambda b: b.status,
            date_field=lambda b: b.created_at,
        )

    def to_row(self, bill: Bill,
               snapshot: Optional[LedgerSnapshot] = None) -> BillRowOut:
        implied = classify_status(bill.total_amount, bill.paid_amount,
                                  bill.status)
        return BillRowOut(
            **bill.model_dump(),
            patient_name=self.lookup_patient_name(bill.patient_id, snapshot),
            balance=compute_balance(bill),
            implied_status=implied,
            status_mismatch=implied != bill.status,
        )

    def list_page(
        self,
        query: Optional[str] = None,
        status_filter: Optional[str] = None,
        page_index: int = 1,
        *,
        page_size: Optional[int] = None,
        date_from: Any = None,
        date_to: Any = None,
    ) -> PageOut[BillRowOut]:
        snap = self._snapshot
        page = self._bill_engine(snap).apply(
            snap.bills,
            query=query,
            selected=status_filter,
            page_index=page_index,
            page_size=page_size or self.page_size,
            date_from=date_from,
            date_to=date_to,
        )
        return PageOut[BillRowOut](
            rows=[self.to_row(b, snap) for b in page.page_items],
            total_pages=page.total_pages,
            total_items=page.total_items,
            page=page.page_index,
            page_size=page.page_size,
        )

    def list_patients(
        self,
        query: Optional[str] = None,
        gender: Optional[str] = None,
        page_index: int = 1,
        *,
        page_size: Optional[int] = None,
    ) -> PageOut[Patient]:
        page = patient_engine.apply(
            list(self._snapshot.patients.values()),
            query=query,
            selected=gender,
            page_index=page_index,
            page_size=page_size or self.page_size,
        )
        return PageOut[Patient](
            rows=page.page_items,
            total_pages=page.total_pages,
            total_items=page.total_items,
            page=page.page_index,
            page_size=page.page_size,
        )

    def get_bill(self, bill_id: str) -> Bill:
        for b in self._snapshot.bills:
            if b.id == bill_id:
                return b
        raise BillNotFound(bill_id)

    def summary(self) -> BillingSummary:
        return aggregate(self._snapshot.bills)

    def reconcile(self) -> List[Reconciliation]:
        return find_mismatches(self._snapshot.bills)

    # -------------------------
    # drafts & mutations
    # -------------------------
    def create_draft(self, data: Mapping[str, Any]) -> BillDraft:
        """Pre-flight validation only; the upstream may still reject it."""
        errors: Dict[str, str] = {}

        patient_id = data.get("patientId", data.get("patient_id"))
        if patient_id is None or not str(patient_id).strip():
            errors["patientId"] = "Patient is required"

        for key, snake, label in (("totalAmount", "total_amount", "Total amount"),
                                  ("paidAmount", "paid_amount", "Paid amount")):
            raw = data.get(key, data.get(snake))
            try:
                money2(raw)
            except InvalidAmount as e:
                errors[key] = f"{label}: {e.reason}"

        if errors:
            raise ValidationError(errors)

        payload = dict(data)
        payload.setdefault("status", BillStatus.PENDING.value)
        payload.pop("id", None)
        payload.pop("createdAt", None)
        payload.pop("created_at", None)
        try:
            return BillDraft.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError({
                _field_label(err["loc"]): err["msg"]
                for err in e.errors()
            }) from e

    def create_bill(self, data: Mapping[str, Any]) -> Optional[Bill]:
        draft = self.create_draft(data)
        created = self.source.create_bill(draft)
        self.refresh()
        return self._fresh(created)

    def update_status(self, bill_id: str, status: str) -> Optional[Bill]:
        updated = self.source.update_bill_status(bill_id, status)
        self.refresh()
        return self._fresh(updated, bill_id)

    def record_payment(self,
                       bill_id: str,
                       paid_amount: Any,
                       payment_method: Optional[str] = None) -> Optional[Bill]:
        try:
            amount = money2(paid_amount)
        except InvalidAmount as e:
            raise ValidationError({"paidAmount": f"Paid amount: {e.reason}"}) from e

        updated = self.source.update_payment(bill_id, amount, payment_method)
        self.refresh()
        return self._fresh(updated, bill_id)

    def _fresh(self, returned: Optional[Bill],
               bill_id: Optional[str] = None) -> Optional[Bill]:
        # prefer the re-fetched copy over whatever the write call echoed
        bid = returned.id if returned is not None else bill_id
        if bid is None:
            return returned
        try:
            return self.get_bill(bid)
        except BillNotFound:
            return returned

    # -------------------------
    # invoice
    # -------------------------
    def render_invoice(self, bill_id: str) -> InvoiceDocument:
        bill = self.get_bill(bill_id)
        patient = self._snapshot.patients.get(bill.patient_id)
        if patient is None:
            logger.warning("invoice aborted bill=%s: patient %r not found",
                           bill.id, bill.patient_id)
            raise MissingPatient(bill.id, bill.patient_id)
        return build_invoice(bill, patient)
