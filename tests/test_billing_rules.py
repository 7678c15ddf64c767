from decimal import Decimal

import pytest

from hms_billing.schemas.billing import Bill, BillStatus
from hms_billing.services.billing_rules import (
    aggregate,
    classify_status,
    compute_balance,
    find_mismatches,
    reconcile_bill,
)


def _bill(total, paid, status="pending", bill_id="X"):
    return Bill.model_validate({
        "id": bill_id,
        "patientId": "P1",
        "totalAmount": total,
        "paidAmount": paid,
        "status": status,
        "createdAt": "2024-01-01T00:00:00",
    })


def test_fully_paid_bill_agrees():
    b = _bill(275.00, 275.00, "paid", "B1")
    assert compute_balance(b) == Decimal("0.00")
    assert classify_status(275, 275, "paid") == BillStatus.PAID
    assert reconcile_bill(b).agrees


def test_partial_payment_disagrees_with_stored_pending():
    b = _bill(200, 50, "pending")
    assert compute_balance(b) == Decimal("150.00")
    rec = reconcile_bill(b)
    assert rec.implied_status == BillStatus.PARTIAL
    assert rec.stored_status == BillStatus.PENDING
    assert not rec.agrees


def test_balance_is_exact_and_unclamped():
    assert compute_balance(_bill("0.30", "0.10")) == Decimal("0.20")
    assert compute_balance(_bill(200, 275, "paid")) == Decimal("-75.00")


@pytest.mark.parametrize(
    "total, paid, expected",
    [
        (100, 0, BillStatus.PENDING),
        (0, 0, BillStatus.PENDING),
        (100, "0.01", BillStatus.PARTIAL),
        (100, "99.99", BillStatus.PARTIAL),
        (100, 100, BillStatus.PAID),
        (100, 150, BillStatus.PAID),
    ],
)
def test_classify_status_from_arithmetic(total, paid, expected):
    assert classify_status(total, paid) == expected


def test_cancelled_overrides_arithmetic():
    assert classify_status(100, 100, "cancelled") == BillStatus.CANCELLED
    assert classify_status(100, 0, BillStatus.CANCELLED) == BillStatus.CANCELLED


def test_find_mismatches_lists_only_disagreements():
    bills = [
        _bill(100, 100, "paid", "ok"),
        _bill(200, 50, "pending", "bad"),
        _bill(80, 0, "cancelled", "cx"),
    ]
    assert [r.bill_id for r in find_mismatches(bills)] == ["bad"]


def test_aggregate_excludes_paid_bills_from_outstanding():
    s = aggregate([_bill(200, 275, "paid")])
    assert s.collected == Decimal("275.00")
    assert s.outstanding == Decimal("0.00")
    assert s.count == 1
    assert s.paid_count == 1


def test_aggregate_outstanding_only_counts_open_bills():
    bills = [
        _bill(200, 50, "pending"),
        _bill(100, 40, "partial"),
        _bill(80, 0, "cancelled"),
        _bill(50, 60, "partial"),  # overpaid but open: contributes 0
    ]
    s = aggregate(bills)
    assert s.outstanding == Decimal("210.00")
    assert s.collected == Decimal("150.00")
    assert s.count == 4
    assert s.paid_count == 0


def test_aggregate_of_nothing():
    s = aggregate([])
    assert (s.collected, s.outstanding, s.count, s.paid_count) == (Decimal("0.00"), Decimal("0.00"), 0, 0)


def test_aggregate_collected_is_additive(bills):
    for cut in range(len(bills) + 1):
        a, b = bills[:cut], bills[cut:]
        assert aggregate(bills).collected == aggregate(a).collected + aggregate(b).collected
