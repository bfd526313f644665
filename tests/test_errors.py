# tests/test_errors.py
from fastapi import FastAPI, Query
from fastapi.testclient import TestClient
from sqlalchemy.orm.exc import StaleDataError

from errors import ConsistencyFailure, InvoiceStateFailure, register_error_handlers


def make_app(exc):
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/boom")
    def boom():
        raise exc

    return app


def test_billing_error_maps_to_kind_and_status():
    client = TestClient(make_app(InvoiceStateFailure("Invoice is cancelled")))

    response = client.get("/boom")

    assert response.status_code == 409
    assert response.json() == {"kind": "state", "detail": "Invoice is cancelled"}


def test_consistency_failure_is_500():
    client = TestClient(make_app(ConsistencyFailure("total mismatch")))

    response = client.get("/boom")

    assert response.status_code == 500
    assert response.json()["kind"] == "consistency"


def test_stale_write_is_a_conflict():
    client = TestClient(make_app(StaleDataError("UPDATE statement on table 'invoices' expected to update 1 row(s)")))

    response = client.get("/boom")

    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


def test_request_validation_uses_the_failure_shape():
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/invoices")
    def list_invoices(page: int = Query(1, ge=1)):
        return {"page": page}

    response = TestClient(app).get("/invoices", params={"page": 0})

    assert response.status_code == 400
    assert response.json() == {
        "kind": "validation",
        "detail": "page: Input should be greater than or equal to 1",
    }
