# hms_billing/api/routes_billing.py
from __future__ import annotations

import logging
from datetime import date
from io import BytesIO
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import StreamingResponse

from hms_billing.api.deps import current_ledger, get_ledger
from hms_billing.schemas.billing import (
    Bill,
    BillingSummaryOut,
    BillStatusIn,
    PaymentIn,
)
from hms_billing.services.billing_ledger import BillLedger
from hms_billing.utils.resp import ok

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/billing", tags=["Billing"])


def _row(ledger: BillLedger, bill: Optional[Bill]) -> Optional[Dict[str, Any]]:
    if bill is None:
        return None
    return ledger.to_row(bill).model_dump(mode="json", by_alias=True)


@router.get("/bills")
def list_bills(
        q: str = Query("", description="patient name or bill id"),
        status: Optional[str] = Query(None),
        page: int = Query(1),
        page_size: Optional[int] = Query(None, ge=1, le=200),
        date_from: Optional[date] = Query(None),
        date_to: Optional[date] = Query(None),
        ledger: BillLedger = Depends(get_ledger),
):
    result = ledger.list_page(q,
                              status,
                              page,
                              page_size=page_size,
                              date_from=date_from,
                              date_to=date_to)
    return ok(result.model_dump(mode="json", by_alias=True))


@router.get("/bills/summary")
def bills_summary(ledger: BillLedger = Depends(get_ledger)):
    s = ledger.summary()
    out = BillingSummaryOut(collected=s.collected,
                            outstanding=s.outstanding,
                            count=s.count,
                            paid_count=s.paid_count)
    return ok(out.model_dump(mode="json", by_alias=True))


@router.get("/bills/reconciliation")
def bills_reconciliation(ledger: BillLedger = Depends(get_ledger)):
    return ok([{
        "billId": r.bill_id,
        "storedStatus": r.stored_status.value,
        "impliedStatus": r.implied_status.value,
    } for r in ledger.reconcile()])


@router.get("/bills/{bill_id}")
def get_bill(bill_id: str, ledger: BillLedger = Depends(get_ledger)):
    return ok(_row(ledger, ledger.get_bill(bill_id)))


@router.post("/bills")
def create_bill(payload: Dict[str, Any] = Body(...),
                ledger: BillLedger = Depends(get_ledger)):
    bill = ledger.create_bill(payload)
    return ok(_row(ledger, bill), status_code=201)


@router.put("/bills/{bill_id}/status")
def update_bill_status(bill_id: str,
                       payload: BillStatusIn,
                       ledger: BillLedger = Depends(get_ledger)):
    bill = ledger.update_status(bill_id, payload.status)
    return ok(_row(ledger, bill))


@router.put("/bills/{bill_id}/payment")
def update_bill_payment(bill_id: str,
                        payload: PaymentIn,
                        ledger: BillLedger = Depends(get_ledger)):
    bill = ledger.record_payment(bill_id, payload.paid_amount,
                                 payload.payment_method)
    return ok(_row(ledger, bill))


@router.get("/bills/{bill_id}/invoice")
def download_invoice(bill_id: str, ledger: BillLedger = Depends(get_ledger)):
    doc = ledger.render_invoice(bill_id)
    headers = {"Content-Disposition": f'attachment; filename="{doc.filename}"'}
    return StreamingResponse(BytesIO(doc.content),
                             media_type=doc.media_type,
                             headers=headers)


@router.post("/refresh")
def refresh_ledger(ledger: BillLedger = Depends(current_ledger)):
    # not get_ledger: refresh() is the only fetch
    snap = ledger.refresh()
    return ok({"bills": len(snap.bills), "patients": len(snap.patients)})
