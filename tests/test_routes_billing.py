import pytest
from fastapi.testclient import TestClient

from hms_billing.api.deps import current_ledger
from hms_billing.main import app
from hms_billing.services.billing_ledger import BillLedger


@pytest.fixture
def client(ledger):
    app.dependency_overrides[current_ledger] = lambda: ledger
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/").status_code == 200


def test_list_bills_envelope_and_shape(client):
    r = client.get("/api/billing/bills")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] is True
    data = body["data"]
    assert data["totalItems"] == 5
    assert data["totalPages"] == 1
    assert data["page"] == 1
    first = data["rows"][0]
    assert first["id"] == "B1"
    assert first["patientName"] == "John Smith"
    assert first["totalAmount"] == 275.0
    assert first["balance"] == 0.0
    assert first["statusMismatch"] is False


def test_list_bills_query_and_status(client):
    data = client.get("/api/billing/bills", params={"q": "b1"}).json()["data"]
    assert [r["id"] for r in data["rows"]] == ["B1"]

    data = client.get("/api/billing/bills", params={"status": "pending"}).json()["data"]
    assert [r["id"] for r in data["rows"]] == ["B2", "B4"]
    assert data["rows"][1]["patientName"] == "Unknown Patient"


def test_list_bills_out_of_range_page(client):
    data = client.get("/api/billing/bills", params={"page": 7, "page_size": 2}).json()["data"]
    assert data["rows"] == []
    assert data["totalPages"] == 3


def test_summary(client):
    data = client.get("/api/billing/bills/summary").json()["data"]
    assert data == {"collected": 600.0, "outstanding": 250.0, "count": 5, "paidCount": 2}


def test_reconciliation(client):
    data = client.get("/api/billing/bills/reconciliation").json()["data"]
    assert data == [{"billId": "B2", "storedStatus": "pending", "impliedStatus": "partial"}]


def test_get_single_bill_and_not_found(client):
    assert client.get("/api/billing/bills/B3").json()["data"]["balance"] == -75.0
    r = client.get("/api/billing/bills/NOPE")
    assert r.status_code == 404
    assert r.json()["status"] is False


def test_create_bill_validation_error(client, source):
    r = client.post("/api/billing/bills", json={"patientId": "", "totalAmount": "x"})
    assert r.status_code == 422
    fields = r.json()["error"]["fields"]
    assert set(fields) == {"patientId", "totalAmount", "paidAmount"}
    assert source.calls == []


def test_create_bill(client):
    r = client.post("/api/billing/bills", json={"patientId": "P1", "totalAmount": 99.5, "paidAmount": 0})
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["id"] == "B6"
    assert data["status"] == "pending"
    assert data["balance"] == 99.5
    listed = client.get("/api/billing/bills").json()["data"]
    assert listed["totalItems"] == 6


def test_update_status(client):
    r = client.put("/api/billing/bills/B2/status", json={"status": "partial"})
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "partial"
    assert r.json()["data"]["statusMismatch"] is False


def test_update_status_rejected_upstream(client):
    r = client.put("/api/billing/bills/B2/status", json={"status": "refunded"})
    assert r.status_code == 502
    assert r.json()["error"]["msg"] == "Invalid status"


def test_update_payment(client):
    r = client.put("/api/billing/bills/B4/payment", json={"paidAmount": 100, "paymentMethod": "cash"})
    assert r.status_code == 200
    assert r.json()["data"]["paidAmount"] == 100.0


def test_update_payment_invalid_amount(client):
    r = client.put("/api/billing/bills/B4/payment", json={"paidAmount": "lots"})
    assert r.status_code == 422
    assert "paidAmount" in r.json()["error"]["fields"]


def test_download_invoice(client):
    r = client.get("/api/billing/bills/B1/invoice")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.headers["content-disposition"] == 'attachment; filename="invoice-B1.pdf"'
    assert r.content.startswith(b"%PDF")


def test_invoice_for_unknown_patient(client):
    r = client.get("/api/billing/bills/B4/invoice")
    assert r.status_code == 404
    assert "P404" in r.json()["error"]["msg"]


def test_upstream_fetch_failure_is_502(client, source):
    source.fail_fetch = True
    r = client.post("/api/billing/refresh")
    assert r.status_code == 502


def test_list_patients(client):
    data = client.get("/api/patients", params={"gender": "male"}).json()["data"]
    assert [p["id"] for p in data["rows"]] == ["P1"]
    assert data["rows"][0]["firstName"] == "John"


def test_refresh_on_cold_ledger_fetches_once(source):
    cold = BillLedger(source, page_size=10)
    app.dependency_overrides[current_ledger] = lambda: cold
    try:
        r = TestClient(app).post("/api/billing/refresh")
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 200
    assert r.json()["data"] == {"bills": 5, "patients": 2}
    assert source.fetch_count == 1


def test_reads_load_a_cold_ledger(source):
    cold = BillLedger(source, page_size=10)
    app.dependency_overrides[current_ledger] = lambda: cold
    try:
        r = TestClient(app).get("/api/billing/bills/summary")
    finally:
        app.dependency_overrides.clear()
    assert r.json()["data"]["count"] == 5
    assert source.fetch_count == 1
