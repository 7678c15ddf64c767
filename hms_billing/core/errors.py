# hms_billing/core/errors.py
from __future__ import annotations

from typing import Dict, Optional


class BillingError(RuntimeError):
    pass


class InvalidAmount(BillingError, ValueError):
    """Non-numeric, non-finite, or disallowed negative currency input."""

    def __init__(self, value, reason: str = "invalid amount"):
        self.value = value
        self.reason = reason
        super().__init__(f"{reason}: {value!r}")


class ValidationError(BillingError):
    """Pre-flight draft validation failure; `fields` maps field -> message."""

    def __init__(self, fields: Dict[str, str]):
        self.fields = dict(fields)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.fields.items()))


class MissingPatient(BillingError):

    def __init__(self, bill_id: str, patient_id: str):
        self.bill_id = bill_id
        self.patient_id = patient_id
        super().__init__(
            f"Patient {patient_id!r} not found for bill {bill_id!r}")


class BillNotFound(BillingError):

    def __init__(self, bill_id: str):
        self.bill_id = bill_id
        super().__init__(f"Bill {bill_id!r} not found")


class _UpstreamError(BillingError):

    def __init__(self, msg: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(msg)


class FetchFailure(_UpstreamError):
    pass


class MutationFailure(_UpstreamError):
    pass
