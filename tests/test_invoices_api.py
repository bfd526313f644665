# tests/test_invoices_api.py
from decimal import Decimal

import pytest

import utils.email
from models import BillableStatus, Utility
from tests.conftest import PROPERTY_ID, TENANT_ID, UNIT_ID


def invoice_payload(*items, tax_id=None):
    return {
        "property_id": PROPERTY_ID,
        "unit_id": UNIT_ID,
        "tenant_id": TENANT_ID,
        "due_date": "2026-11-05",
        "tax_id": tax_id,
        "items": list(items) or [{"type": "rent", "description": "Rent 11/2026", "amount": "1000.00"}],
    }


@pytest.fixture
def create_invoice(client, auth_headers):
    def _create(*items, tax_id=None):
        response = client.post("/api/invoices", json=invoice_payload(*items, tax_id=tax_id), headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _create


class FakeResponse:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text


class TestAuth:
    def test_missing_token_is_401(self, client):
        assert client.get("/api/invoices").status_code == 401

    def test_invalid_token_is_403(self, client):
        response = client.get("/api/invoices", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 403


class TestCreate:
    def test_create_with_utility_and_tax(self, client, auth_headers, create_invoice, make_utility, tax, db):
        utility = make_utility("150.00")

        body = create_invoice(
            {"type": "rent", "description": "Rent 11/2026", "amount": "1000.00"},
            {"type": "utility", "description": "Water 09/2026", "amount": "150.00", "reference_id": utility.id},
            tax_id=tax.id,
        )

        assert body["invoice_number"].startswith("INV-")
        assert body["status"] == "draft"
        assert Decimal(body["subtotal"]) == Decimal("1150.00")
        assert Decimal(body["tax_amount"]) == Decimal("184.00")
        assert Decimal(body["total_amount"]) == Decimal("1334.00")
        assert Decimal(body["balance_due"]) == Decimal("1334.00")
        assert [item["status"] for item in body["items"]] == ["active", "active"]
        assert body["updated_at"] >= body["created_at"]

        db.expire_all()
        assert db.get(Utility, utility.id).status == BillableStatus.INVOICED

    def test_empty_items_fail_request_validation(self, client, auth_headers):
        payload = invoice_payload()
        payload["items"] = []
        response = client.post("/api/invoices", json=payload, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["kind"] == "validation"
        assert response.json()["detail"].startswith("items: ")

    def test_unsaved_source_is_400_and_rolls_back(self, client, auth_headers, make_utility, db):
        saved = make_utility("150.00")
        pending = make_utility("80.00", status=BillableStatus.PENDING)

        response = client.post(
            "/api/invoices",
            json=invoice_payload(
                {"type": "utility", "description": "Water", "amount": "150.00", "reference_id": saved.id},
                {"type": "utility", "description": "Power", "amount": "80.00", "reference_id": pending.id},
            ),
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["kind"] == "validation"
        db.expire_all()
        assert db.get(Utility, saved.id).status == BillableStatus.SAVED
        assert client.get("/api/invoices", headers=auth_headers).json()["total"] == 0

    def test_unknown_tax_is_409_integrity(self, client, auth_headers):
        response = client.post("/api/invoices", json=invoice_payload(tax_id=999), headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["kind"] == "integrity"


class TestRead:
    def test_get_and_list(self, client, auth_headers, create_invoice):
        created = create_invoice()
        create_invoice()

        response = client.get(f"/api/invoices/{created['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["invoice_number"] == created["invoice_number"]

        listing = client.get("/api/invoices", params={"status": "draft"}, headers=auth_headers).json()
        assert listing["total"] == 2
        assert len(listing["invoices"]) == 2

    def test_other_owner_gets_404(self, client, other_auth_headers, create_invoice):
        created = create_invoice()

        response = client.get(f"/api/invoices/{created['id']}", headers=other_auth_headers)

        assert response.status_code == 404
        assert response.json() == {"kind": "not_found", "detail": f"Invoice with ID {created['id']} not found"}
        assert client.get("/api/invoices", headers=other_auth_headers).json()["total"] == 0

    def test_billable_items(self, client, auth_headers, make_utility, make_deposit):
        utility = make_utility("150.00")
        make_utility("99.00", status=BillableStatus.PENDING)
        deposit = make_deposit("2000.00")

        response = client.get("/api/invoices/billable-items", params={"tenant_id": TENANT_ID}, headers=auth_headers)

        assert response.status_code == 200
        assert [(i["type"], i["reference_id"]) for i in response.json()] == [
            ("utility", utility.id),
            ("deposit", deposit.id),
        ]

    def test_tenant_summary(self, client, auth_headers, create_invoice):
        create_invoice()

        response = client.get(f"/api/invoices/tenant/{TENANT_ID}/summary", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total_invoices"] == 1
        assert Decimal(body["total_owed"]) == Decimal("1000.00")
        assert body["by_status"]["draft"]["count"] == 1


class TestItems:
    def test_add_void_and_delete_items(self, client, auth_headers, create_invoice):
        invoice = create_invoice()
        base = f"/api/invoices/{invoice['id']}"

        added = client.post(
            f"{base}/items",
            json={"type": "other", "description": "Late fee", "amount": "50.00"},
            headers=auth_headers,
        )
        assert added.status_code == 201
        assert Decimal(added.json()["total_amount"]) == Decimal("1050.00")
        assert added.json()["updated_at"] >= invoice["updated_at"]
        fee_id = added.json()["items"][-1]["id"]

        voided = client.patch(f"{base}/items/{fee_id}/void", headers=auth_headers)
        assert voided.status_code == 200
        assert Decimal(voided.json()["subtotal"]) == Decimal("1000.00")
        assert voided.json()["items"][-1]["status"] == "void"

        rent_id = invoice["items"][0]["id"]
        deleted = client.delete(f"{base}/items/{rent_id}", headers=auth_headers)
        assert deleted.status_code == 200
        assert Decimal(deleted.json()["total_amount"]) == Decimal("0.00")
        assert [item["id"] for item in deleted.json()["items"]] == [fee_id]

    def test_late_fee_on_paid_invoice_is_outstanding_again(self, client, auth_headers, create_invoice):
        invoice = create_invoice()
        base = f"/api/invoices/{invoice['id']}"
        paid = client.post(
            "/api/payments",
            json={
                "property_id": PROPERTY_ID,
                "unit_id": UNIT_ID,
                "tenant_id": TENANT_ID,
                "invoice_id": invoice["id"],
                "amount": "1000.00",
                "payment_date": "2026-10-20",
                "payment_type": "full",
                "payment_mode": "cash",
            },
            headers=auth_headers,
        )
        assert paid.status_code == 201, paid.text

        response = client.post(
            f"{base}/items",
            json={"type": "other", "description": "Late fee", "amount": "200.00"},
            headers=auth_headers,
        )

        body = response.json()
        assert body["status"] == "partially_paid"
        assert Decimal(body["balance_due"]) == Decimal("200.00")
        listed = client.get("/api/invoices", params={"outstanding_only": True}, headers=auth_headers).json()
        assert [inv["id"] for inv in listed["invoices"]] == [invoice["id"]]

    def test_tax_and_recalculate(self, client, auth_headers, create_invoice, tax):
        invoice = create_invoice()
        base = f"/api/invoices/{invoice['id']}"

        taxed = client.post(f"{base}/tax", json={"tax_id": tax.id}, headers=auth_headers)
        assert Decimal(taxed.json()["tax_amount"]) == Decimal("160.00")

        recalculated = client.post(f"{base}/recalculate", headers=auth_headers)
        assert recalculated.status_code == 200
        assert Decimal(recalculated.json()["total_amount"]) == Decimal("1160.00")

        untaxed = client.post(f"{base}/tax", json={"tax_id": None}, headers=auth_headers)
        assert Decimal(untaxed.json()["total_amount"]) == Decimal("1000.00")


class TestLifecycle:
    def test_void_invoice_then_refuse_changes(self, client, auth_headers, create_invoice):
        invoice = create_invoice()
        base = f"/api/invoices/{invoice['id']}"

        voided = client.post(f"{base}/void", headers=auth_headers)
        assert voided.status_code == 200
        assert voided.json()["status"] == "cancelled"
        assert Decimal(voided.json()["total_amount"]) == Decimal("0.00")

        again = client.post(f"{base}/void", headers=auth_headers)
        assert again.status_code == 409
        assert again.json()["kind"] == "state"

    def test_send_without_notification(self, client, auth_headers, create_invoice):
        invoice = create_invoice()

        response = client.patch(f"/api/invoices/{invoice['id']}/send", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "sent"

    def test_send_with_notification(self, client, auth_headers, create_invoice, monkeypatch):
        invoice = create_invoice()
        sent = []
        monkeypatch.setattr(utils.email, "BREVO_KEY", "brevo-test-key")
        monkeypatch.setattr(
            utils.email.requests,
            "post",
            lambda url, **kwargs: sent.append(kwargs["json"]) or FakeResponse(201),
        )

        response = client.patch(
            f"/api/invoices/{invoice['id']}/send",
            json={"notify_email": "tenant@example.com"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert sent[0]["to"] == [{"email": "tenant@example.com"}]
        assert invoice["invoice_number"] in sent[0]["subject"]

    def test_failed_notification_keeps_draft(self, client, auth_headers, create_invoice, monkeypatch):
        invoice = create_invoice()
        monkeypatch.setattr(utils.email, "BREVO_KEY", "brevo-test-key")
        monkeypatch.setattr(utils.email.requests, "post", lambda url, **kwargs: FakeResponse(400, "bad sender"))

        response = client.patch(
            f"/api/invoices/{invoice['id']}/send",
            json={"notify_email": "tenant@example.com"},
            headers=auth_headers,
        )

        assert response.status_code == 502
        assert response.json()["kind"] == "notification"
        assert client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers).json()["status"] == "draft"

    def test_mark_overdue(self, client, auth_headers, create_invoice):
        invoice = create_invoice()
        client.patch(f"/api/invoices/{invoice['id']}/send", headers=auth_headers)

        response = client.post("/api/invoices/mark-overdue", params={"as_of": "2026-12-01"}, headers=auth_headers)

        assert response.json() == {"marked_overdue": 1}
        assert client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers).json()["status"] == "overdue"

    def test_delete_invoice(self, client, auth_headers, create_invoice):
        invoice = create_invoice()

        assert client.delete(f"/api/invoices/{invoice['id']}", headers=auth_headers).status_code == 204
        assert client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers).status_code == 404
