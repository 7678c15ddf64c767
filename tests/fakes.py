"""Sample upstream records and an in-memory upstream source for tests."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from hms_billing.core.errors import FetchFailure, MutationFailure
from hms_billing.schemas.billing import Bill, BillDraft
from hms_billing.schemas.patient import Patient


def make_patients() -> List[Dict[str, Any]]:
    return [
        {
            "id": "P1",
            "firstName": "John",
            "lastName": "Smith",
            "email": "john.smith@example.com",
            "phone": "555-0101",
            "gender": "male",
        },
        {
            "id": "P2",
            "firstName": "Jane",
            "lastName": "Doe",
            "email": "jane.doe@example.com",
            "phone": "555-0202",
            "gender": "female",
        },
    ]


def make_bills() -> List[Dict[str, Any]]:
    return [
        {
            "id": "B1",
            "patientId": "P1",
            "items": [
                {
                    "description": "Consultation",
                    "quantity": 1,
                    "unitPrice": 150,
                    "totalPrice": 150,
                    "type": "consultation",
                },
                {
                    "description": "Blood test",
                    "quantity": 1,
                    "unitPrice": 125,
                    "totalPrice": 125,
                    "type": "test",
                },
            ],
            "totalAmount": 275.00,
            "paidAmount": 275.00,
            "status": "paid",
            "createdAt": "2024-01-15T10:30:00",
        },
        {
            "id": "B2",
            "patientId": "P2",
            "items": [],
            "totalAmount": 200,
            "paidAmount": 50,
            "status": "pending",
            "createdAt": "2024-02-01T09:00:00",
        },
        {
            "id": "B3",
            "patientId": "P1",
            "items": [],
            "totalAmount": 200,
            "paidAmount": 275,
            "status": "paid",
            "createdAt": "2024-02-10T12:00:00",
        },
        {
            "id": "B4",
            "patientId": "P404",
            "items": [],
            "totalAmount": 100,
            "paidAmount": 0,
            "status": "pending",
            "createdAt": "2024-03-05T08:15:00",
        },
        {
            "id": "B5",
            "patientId": "P2",
            "items": [],
            "totalAmount": 80,
            "paidAmount": 0,
            "status": "cancelled",
            "createdAt": "2024-03-20T16:45:00",
        },
    ]


class FakeSource:
    """In-memory stand-in for the upstream billing REST API."""

    def __init__(self, bills=None, patients=None):
        self.bills: List[Dict[str, Any]] = make_bills() if bills is None else bills
        self.patients: List[Dict[str, Any]] = make_patients() if patients is None else patients
        self.fetch_count = 0
        self.calls: List[tuple] = []
        self.fail_fetch = False
        self.fail_mutation = False

    def fetch_bills(self) -> List[Bill]:
        self.fetch_count += 1
        if self.fail_fetch:
            raise FetchFailure("bills unavailable", status_code=503)
        return [Bill.model_validate(b) for b in self.bills]

    def fetch_patients(self) -> List[Patient]:
        if self.fail_fetch:
            raise FetchFailure("patients unavailable", status_code=503)
        return [Patient.model_validate(p) for p in self.patients]

    def _find(self, bill_id: str) -> Dict[str, Any]:
        for b in self.bills:
            if b["id"] == bill_id:
                return b
        raise MutationFailure("Bill not found", status_code=404)

    def create_bill(self, draft: BillDraft) -> Optional[Bill]:
        self.calls.append(("create", draft))
        if self.fail_mutation:
            raise MutationFailure("create rejected", status_code=400)
        row = draft.model_dump(by_alias=True)
        row["id"] = f"B{len(self.bills) + 1}"
        row["createdAt"] = datetime(2024, 4, 1, 10, 0).isoformat()
        self.bills.append(row)
        return Bill.model_validate(row)

    def update_bill_status(self, bill_id: str, status: str) -> Optional[Bill]:
        self.calls.append(("status", bill_id, status))
        if self.fail_mutation:
            raise MutationFailure("update rejected", status_code=400)
        if status not in ("pending", "partial", "paid", "cancelled"):
            raise MutationFailure("Invalid status", status_code=400)
        row = self._find(bill_id)
        row["status"] = status
        return Bill.model_validate(row)

    def update_payment(self, bill_id, paid_amount, payment_method=None) -> Optional[Bill]:
        self.calls.append(("payment", bill_id, paid_amount, payment_method))
        if self.fail_mutation:
            raise MutationFailure("payment rejected", status_code=400)
        row = self._find(bill_id)
        row["paidAmount"] = paid_amount
        if payment_method:
            row["paymentMethod"] = payment_method
        return Bill.model_validate(row)


