from __future__ import annotations

from typing import List

import pytest

from fakes import FakeSource, make_bills, make_patients
from hms_billing.schemas.billing import Bill
from hms_billing.schemas.patient import Patient
from hms_billing.services.billing_ledger import BillLedger


@pytest.fixture
def patients() -> List[Patient]:
    return [Patient.model_validate(p) for p in make_patients()]


@pytest.fixture
def bills() -> List[Bill]:
    return [Bill.model_validate(b) for b in make_bills()]


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def ledger(source) -> BillLedger:
    led = BillLedger(source, page_size=10)
    led.refresh()
    return led
