# hms_billing/api/routes_patients.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from hms_billing.api.deps import get_ledger
from hms_billing.services.billing_ledger import BillLedger
from hms_billing.utils.resp import ok

router = APIRouter(tags=["Patients"])


@router.get("/patients")
def list_patients(q: str = Query(""),
                  gender: Optional[str] = Query(None),
                  page: int = Query(1),
                  page_size: Optional[int] = Query(None, ge=1, le=200),
                  ledger: BillLedger = Depends(get_ledger)):
    result = ledger.list_patients(q, gender, page, page_size=page_size)
    return ok(result.model_dump(mode="json", by_alias=True))
