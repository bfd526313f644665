# routers/payments.py
"""
Payments API.

POST /payments records money received, optionally against an invoice, and
moves the invoice to partially_paid or paid in the same transaction.
POST /payments/batch spreads one payment over several invoices.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from azure_blob import RECEIPTS_CONTAINER, upload_to_blob
from database import get_session
from dependencies import get_owner_id
from schemas.payment import (
     BatchPaymentCreate,
     PaymentCreate,
     PaymentListResponse,
     PaymentResponse,
     ReceiptUploadResponse,
)
from services.payment_service import PaymentService

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post(
     "",
     response_model=PaymentResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record a payment"
)
def record_payment(
     body: PaymentCreate,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id),
):
     payment = PaymentService.record_payment(
          db,
          owner_id=owner_id,
          invoice_id=body.invoice_id,
          amount=body.amount,
          payment_date=body.payment_date,
          payment_type=body.payment_type,
          payment_mode=body.payment_mode,
          property_id=body.property_id,
          unit_id=body.unit_id,
          tenant_id=body.tenant_id,
          description=body.description,
          transaction_id=body.transaction_id,
          file_url=body.file_url,
     )
     db.commit()
     db.refresh(payment)
     return payment


@router.post(
     "/batch",
     response_model=List[PaymentResponse],
     status_code=status.HTTP_201_CREATED,
     summary="Record one payment across several invoices"
)
def record_batch_payment(
     body: BatchPaymentCreate,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id),
):
     """
     - **full**: the amount must cover every selected invoice's balance
     - **partial**: the amount is split evenly between the invoices
     - no invoices: one payment not attached to any invoice
     """
     payments = PaymentService.record_batch_payment(
          db,
          owner_id=owner_id,
          invoice_ids=body.invoice_ids,
          amount=body.amount,
          payment_date=body.payment_date,
          payment_type=body.payment_type,
          payment_mode=body.payment_mode,
          property_id=body.property_id,
          unit_id=body.unit_id,
          tenant_id=body.tenant_id,
          description=body.description,
          transaction_id=body.transaction_id,
          file_url=body.file_url,
     )
     db.commit()
     for payment in payments:
          db.refresh(payment)
     return payments


@router.get(
     "",
     response_model=PaymentListResponse,
     summary="List payments"
)
def list_payments(
     invoice_id: Optional[int] = Query(None, description="Filter by invoice ID"),
     tenant_id: Optional[int] = Query(None, description="Filter by tenant ID"),
     page: int = Query(1, ge=1, description="Page number"),
     page_size: int = Query(50, ge=1, le=100, description="Items per page"),
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id),
):
     payments, total = PaymentService.list_payments(
          db, owner_id, invoice_id=invoice_id, tenant_id=tenant_id, page=page, page_size=page_size
     )
     return PaymentListResponse(
          payments=[PaymentResponse.model_validate(p) for p in payments],
          total=total,
          page=page,
          page_size=page_size,
     )


@router.get(
     "/{payment_id}",
     response_model=PaymentResponse,
     summary="Get payment by ID"
)
def get_payment(
     payment_id: int,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id),
):
     return PaymentService.get_payment(db, owner_id, payment_id)


@router.post(
     "/receipts",
     response_model=ReceiptUploadResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Upload a payment receipt"
)
def upload_receipt(
     receipt: UploadFile = File(...),
     owner_id: int = Depends(get_owner_id),
):
     """Store the receipt and return its URL for the payment's file_url."""
     return ReceiptUploadResponse(file_url=upload_to_blob(receipt, RECEIPTS_CONTAINER, owner_id))
