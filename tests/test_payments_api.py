# tests/test_payments_api.py
from decimal import Decimal

import pytest

import routers.payments
from tests.conftest import PROPERTY_ID, TENANT_ID, UNIT_ID


def payment_payload(amount, invoice_id=None, payment_type="partial"):
    return {
        "property_id": PROPERTY_ID,
        "unit_id": UNIT_ID,
        "tenant_id": TENANT_ID,
        "invoice_id": invoice_id,
        "amount": amount,
        "payment_date": "2026-10-20",
        "payment_type": payment_type,
        "payment_mode": "mpesa",
        "transaction_id": "SJK8H2L0QP",
    }


@pytest.fixture
def invoice(client, auth_headers):
    response = client.post(
        "/api/invoices",
        json={
            "property_id": PROPERTY_ID,
            "unit_id": UNIT_ID,
            "tenant_id": TENANT_ID,
            "due_date": "2026-11-05",
            "items": [{"type": "rent", "description": "Rent 11/2026", "amount": "1000.00"}],
        },
        headers=auth_headers,
    )
    invoice = response.json()
    client.patch(f"/api/invoices/{invoice['id']}/send", headers=auth_headers)
    return invoice


def get_invoice(client, auth_headers, invoice_id):
    return client.get(f"/api/invoices/{invoice_id}", headers=auth_headers).json()


def test_partial_then_full_payment(client, auth_headers, invoice):
    first = client.post("/api/payments", json=payment_payload("400.00", invoice["id"]), headers=auth_headers)
    assert first.status_code == 201
    assert first.json()["status"] == "confirmed"

    body = get_invoice(client, auth_headers, invoice["id"])
    assert body["status"] == "partially_paid"
    assert Decimal(body["balance_due"]) == Decimal("600.00")

    client.post("/api/payments", json=payment_payload("600.00", invoice["id"]), headers=auth_headers)
    body = get_invoice(client, auth_headers, invoice["id"])
    assert body["status"] == "paid"
    assert Decimal(body["amount_paid"]) == Decimal("1000.00")


def test_zero_amount_fails_validation(client, auth_headers, invoice):
    response = client.post("/api/payments", json=payment_payload("0", invoice["id"]), headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"kind": "validation", "detail": "amount: Input should be greater than 0"}


def test_payment_on_cancelled_invoice_is_409(client, auth_headers, invoice):
    client.post(f"/api/invoices/{invoice['id']}/void", headers=auth_headers)

    response = client.post("/api/payments", json=payment_payload("100.00", invoice["id"]), headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["kind"] == "state"


def test_payment_against_other_owners_invoice_is_404(client, other_auth_headers, invoice):
    response = client.post("/api/payments", json=payment_payload("100.00", invoice["id"]), headers=other_auth_headers)
    assert response.status_code == 404


def test_batch_full_payment(client, auth_headers, invoice):
    payload = payment_payload("1000.00", payment_type="full")
    payload["invoice_ids"] = [invoice["id"]]

    response = client.post("/api/payments/batch", json=payload, headers=auth_headers)

    assert response.status_code == 201
    assert [Decimal(p["amount"]) for p in response.json()] == [Decimal("1000.00")]
    assert get_invoice(client, auth_headers, invoice["id"])["status"] == "paid"


def test_batch_full_payment_short_is_400(client, auth_headers, invoice):
    payload = payment_payload("999.00", payment_type="full")
    payload["invoice_ids"] = [invoice["id"]]

    response = client.post("/api/payments/batch", json=payload, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["kind"] == "validation"
    assert get_invoice(client, auth_headers, invoice["id"])["status"] == "sent"


def test_list_and_get_payments(client, auth_headers, other_auth_headers, invoice):
    created = client.post("/api/payments", json=payment_payload("100.00", invoice["id"]), headers=auth_headers).json()
    client.post("/api/payments", json=payment_payload("50.00"), headers=auth_headers)

    listing = client.get("/api/payments", params={"invoice_id": invoice["id"]}, headers=auth_headers).json()
    assert listing["total"] == 1
    assert listing["payments"][0]["id"] == created["id"]
    assert client.get("/api/payments", headers=auth_headers).json()["total"] == 2

    assert client.get(f"/api/payments/{created['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/payments/{created['id']}", headers=other_auth_headers).status_code == 404


def test_deleted_invoice_detaches_payment(client, auth_headers, invoice):
    created = client.post("/api/payments", json=payment_payload("100.00", invoice["id"]), headers=auth_headers).json()

    client.delete(f"/api/invoices/{invoice['id']}", headers=auth_headers)

    assert client.get(f"/api/payments/{created['id']}", headers=auth_headers).json()["invoice_id"] is None


def test_receipt_upload(client, auth_headers, monkeypatch):
    uploads = []

    def fake_upload(file, container, owner_id):
        uploads.append((file.filename, container, owner_id))
        return f"https://example.blob.core.windows.net/{container}/{owner_id}/receipt.pdf"

    monkeypatch.setattr(routers.payments, "upload_to_blob", fake_upload)

    response = client.post(
        "/api/payments/receipts",
        files={"receipt": ("receipt.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth_headers,
    )

    assert response.status_code == 201
    assert response.json()["file_url"].endswith("/1/receipt.pdf")
    assert uploads == [("receipt.pdf", routers.payments.RECEIPTS_CONTAINER, 1)]
