# hms_billing/api/deps.py
from __future__ import annotations

from fastapi import Depends, Request

from hms_billing.services.billing_ledger import BillLedger


def current_ledger(request: Request) -> BillLedger:
    return request.app.state.ledger


def get_ledger(ledger: BillLedger = Depends(current_ledger)) -> BillLedger:
    ledger.ensure_loaded()
    return ledger
