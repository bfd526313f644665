# tests/conftest.py
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ENVIRONMENT"] = "test"

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from database import SessionLocal, engine
from main import app
from models import Base, BillableStatus, Deposit, InvoiceItemType, Tax, Utility
from services.billable_service import ItemDraft
from services.invoice_service import InvoiceService
from services.numbering import reset_sequence_checkpoint

OWNER_ID = 1
OTHER_OWNER_ID = 2
TENANT_ID = 7
PROPERTY_ID = 3
UNIT_ID = 4


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    reset_sequence_checkpoint()
    yield
    Base.metadata.drop_all(bind=engine)
    reset_sequence_checkpoint()


@pytest.fixture
def db(_tables):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(_tables):
    with TestClient(app) as test_client:
        yield test_client


def make_token(owner_id):
    return jwt.encode({"id": owner_id, "role": "owner"}, "test-secret", algorithm="HS256")


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token(OWNER_ID)}"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": f"Bearer {make_token(OTHER_OWNER_ID)}"}


@pytest.fixture
def tax(db):
    tax = Tax(owner_id=OWNER_ID, name="VAT", percentage=Decimal("16.00"))
    db.add(tax)
    db.commit()
    return tax


@pytest.fixture
def make_utility(db):
    def _make(amount="150.00", status=BillableStatus.SAVED, owner_id=OWNER_ID, item="water"):
        utility = Utility(
            owner_id=owner_id,
            property_id=PROPERTY_ID,
            unit_id=UNIT_ID,
            tenant_id=TENANT_ID,
            amount=Decimal(amount),
            item=item,
            month=9,
            year=2026,
            rate=Decimal("50.00"),
            status=status,
        )
        db.add(utility)
        db.commit()
        return utility
    return _make


@pytest.fixture
def make_deposit(db):
    def _make(amount="2000.00", status=BillableStatus.SAVED, deposit_type="security"):
        deposit = Deposit(
            owner_id=OWNER_ID,
            property_id=PROPERTY_ID,
            unit_id=UNIT_ID,
            tenant_id=TENANT_ID,
            amount=Decimal(amount),
            type=deposit_type,
            date=date(2026, 9, 1),
            status=status,
        )
        db.add(deposit)
        db.commit()
        return deposit
    return _make


def rent(amount="1000.00"):
    return ItemDraft(type=InvoiceItemType.RENT, description="Rent 10/2026", amount=Decimal(amount))


@pytest.fixture
def make_invoice(db):
    def _make(*items, tax_id=None, owner_id=OWNER_ID, due_date=date(2026, 11, 5), today=date(2026, 10, 19)):
        invoice = InvoiceService.create_invoice(
            db,
            owner_id=owner_id,
            property_id=PROPERTY_ID,
            unit_id=UNIT_ID,
            tenant_id=TENANT_ID,
            due_date=due_date,
            items=list(items) or [rent()],
            tax_id=tax_id,
            today=today,
        )
        db.commit()
        return invoice
    return _make
