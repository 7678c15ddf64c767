# hms_billing/schemas/billing.py
from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, Field, field_validator

from hms_billing.schemas.common import Amount, CamelModel, SignedAmount


class BillStatus(str, enum.Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    CANCELLED = "cancelled"


class BillItemType(str, enum.Enum):
    CONSULTATION = "consultation"
    MEDICINE = "medicine"
    TEST = "test"
    PROCEDURE = "procedure"
    OTHER = "other"


def _as_str_id(v: Any) -> Any:
    # upstream ids may arrive as numbers
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


class BillItem(CamelModel):
    id: Optional[str] = None
    description: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    unit_price: Amount
    # stored independently of quantity * unit_price; printed as-is
    total_price: Amount
    type: BillItemType = BillItemType.OTHER

    @field_validator("id", mode="before")
    @classmethod
    def _id_str(cls, v):
        return _as_str_id(v)

    @field_validator("description")
    @classmethod
    def _description_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("description must not be blank")
        return v


class BillDraft(CamelModel):
    """Bill payload before the upstream assigns `id` and `createdAt`."""
    patient_id: str = Field(min_length=1)
    doctor_id: Optional[str] = None
    items: List[BillItem] = Field(default_factory=list)
    total_amount: Amount
    paid_amount: Amount
    status: BillStatus = BillStatus.PENDING
    payment_method: Optional[str] = None
    notes: Optional[str] = None


class Bill(BillDraft):
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    # stale or missing references still list, as "Unknown Patient"
    patient_id: str = ""
    created_at: datetime

    @field_validator("id", "patient_id", "doctor_id", mode="before")
    @classmethod
    def _ids_str(cls, v):
        return _as_str_id(v)


class BillRowOut(Bill):
    """A listed bill with its resolved patient name and reconciliation."""
    patient_name: str
    balance: SignedAmount
    implied_status: BillStatus
    status_mismatch: bool


class BillingSummaryOut(CamelModel):
    collected: SignedAmount
    outstanding: SignedAmount
    count: int
    paid_count: int


class BillStatusIn(CamelModel):
    # status values are validated by the upstream service, not here
    status: str


class PaymentIn(CamelModel):
    paid_amount: Any = None
    payment_method: Optional[str] = None
