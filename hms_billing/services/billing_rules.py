# hms_billing/services/billing_rules.py
"""
Pure financial rules over bills: balance, arithmetic-implied status and
the collection summary shown on the billing dashboard.

The stored `status` of a bill stays authoritative for filtering;
`classify_status` only feeds reconciliation (flagging disagreements).
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from hms_billing.schemas.billing import Bill, BillStatus
from hms_billing.services.billing_math import from_minor, to_minor

_OPEN_STATUSES = (BillStatus.PENDING, BillStatus.PARTIAL)


def _status(v: Any) -> Optional[BillStatus]:
    if v is None or v == "":
        return None
    return v if isinstance(v, BillStatus) else BillStatus(str(v))


def compute_balance(bill: Bill) -> Decimal:
    """total - paid, exact and unclamped (negative means overpayment)."""
    return from_minor(
        to_minor(bill.total_amount) - to_minor(bill.paid_amount))


def classify_status(total_amount: Any,
                    paid_amount: Any,
                    explicit_status: Any = None) -> BillStatus:
    if _status(explicit_status) == BillStatus.CANCELLED:
        return BillStatus.CANCELLED

    total = to_minor(total_amount, allow_negative=True)
    paid = to_minor(paid_amount, allow_negative=True)
    if paid <= 0:
        return BillStatus.PENDING
    if paid < total:
        return BillStatus.PARTIAL
    return BillStatus.PAID


@dataclass(frozen=True)
class Reconciliation:
    bill_id: str
    stored_status: BillStatus
    implied_status: BillStatus

    @property
    def agrees(self) -> bool:
        return self.stored_status == self.implied_status


def reconcile_bill(bill: Bill) -> Reconciliation:
    return Reconciliation(
        bill_id=bill.id,
        stored_status=bill.status,
        implied_status=classify_status(bill.total_amount, bill.paid_amount,
                                       bill.status),
    )


def find_mismatches(bills: Iterable[Bill]) -> List[Reconciliation]:
    out = []
    for b in bills:
        rec = reconcile_bill(b)
        if not rec.agrees:
            out.append(rec)
    return out


@dataclass(frozen=True)
class BillingSummary:
    collected: Decimal
    outstanding: Decimal
    count: int
    paid_count: int


def aggregate(bills: Iterable[Bill]) -> BillingSummary:
    collected = 0
    outstanding = 0
    count = 0
    paid_count = 0

    for b in bills:
        count += 1
        collected += to_minor(b.paid_amount)
        if b.status in _OPEN_STATUSES:
            # open bills only; paid/cancelled never count as outstanding
            outstanding += max(0, to_minor(b.total_amount) - to_minor(b.paid_amount))
        if b.status == BillStatus.PAID:
            paid_count += 1

    return BillingSummary(
        collected=from_minor(collected),
        outstanding=from_minor(outstanding),
        count=count,
        paid_count=paid_count,
    )
