# hms_billing/services/billing_client.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ValidationError as PydanticValidationError

from hms_billing.core.config import settings
from hms_billing.core.errors import FetchFailure, MutationFailure
from hms_billing.core.session import get_session
from hms_billing.schemas.billing import Bill, BillDraft
from hms_billing.schemas.patient import Patient

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _unwrap_list(payload: Any, key: str) -> List[Any]:
    # upstream answers either `[...]` or `{"bills": [...]}` / `{"data": [...]}`
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for k in (key, "data", "items", "results"):
            v = payload.get(k)
            if isinstance(v, list):
                return v
    return []


def _unwrap_one(payload: Any, key: str) -> Any:
    if isinstance(payload, dict):
        for k in (key, "data"):
            v = payload.get(k)
            if isinstance(v, dict):
                return v
    return payload


def _parse_many(model: Type[M], rows: List[Any], what: str) -> List[M]:
    out: List[M] = []
    skipped = 0
    for row in rows:
        try:
            out.append(model.model_validate(row))
        except PydanticValidationError as e:
            skipped += 1
            logger.debug("skip malformed %s record: %s", what, e)
    if skipped:
        logger.warning("skipped %d malformed %s record(s) from upstream",
                       skipped, what)
    return out


def _error_message(resp: requests.Response, default: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        msg = body.get("message") or body.get("detail") or body.get("error")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    return default


class BillingApiClient:
    """The upstream hospital REST API: bills and patients."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.BILLING_API_BASE_URL).rstrip("/")
        self.timeout = settings.BILLING_API_TIMEOUT if timeout is None else timeout
        self.http = http or requests.Session()

    # -------------------------
    # transport
    # -------------------------
    def _request(self, method: str, endpoint: str, *, error_cls,
                 json: Any = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        headers = {"Content-Type": "application/json"}
        headers.update(get_session().auth_headers())

        try:
            resp = self.http.request(method,
                                     url,
                                     json=json,
                                     headers=headers,
                                     timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise error_cls(f"API request failed: {e}") from e

        if not resp.ok:
            msg = _error_message(resp, "API request failed")
            logger.warning("%s %s -> %s %s", method, url, resp.status_code, msg)
            raise error_cls(msg, status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise error_cls("API returned a non-JSON response",
                            status_code=resp.status_code) from e

    # -------------------------
    # reads
    # -------------------------
    def fetch_bills(self) -> List[Bill]:
        payload = self._request("GET", "/bills", error_cls=FetchFailure)
        return _parse_many(Bill, _unwrap_list(payload, "bills"), "bill")

    def fetch_patients(self) -> List[Patient]:
        payload = self._request("GET", "/patients", error_cls=FetchFailure)
        return _parse_many(Patient, _unwrap_list(payload, "patients"),
                           "patient")

    # -------------------------
    # writes
    # -------------------------
    def _bill_from(self, payload: Any) -> Optional[Bill]:
        try:
            return Bill.model_validate(_unwrap_one(payload, "bill"))
        except PydanticValidationError:
            # some deployments answer writes with a bare {"message": ...}
            return None

    def create_bill(self, draft: BillDraft) -> Optional[Bill]:
        body = jsonable_encoder(
            draft.model_dump(by_alias=True, exclude_none=True))
        payload = self._request("POST",
                                "/bills",
                                json=body,
                                error_cls=MutationFailure)
        return self._bill_from(payload)

    def update_bill_status(self, bill_id: str, status: str) -> Optional[Bill]:
        payload = self._request("PUT",
                                f"/bills/{bill_id}/status",
                                json={"status": status},
                                error_cls=MutationFailure)
        return self._bill_from(payload)

    def update_payment(
        self,
        bill_id: str,
        paid_amount: Decimal,
        payment_method: Optional[str] = None,
    ) -> Optional[Bill]:
        body: Dict[str, Any] = {"paidAmount": float(paid_amount)}
        if payment_method:
            body["paymentMethod"] = payment_method
        payload = self._request("PUT",
                                f"/bills/{bill_id}/payment",
                                json=body,
                                error_cls=MutationFailure)
        return self._bill_from(payload)
