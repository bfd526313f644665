# schemas/payment.py
"""
Pydantic schemas for the payments API.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import PaymentMode, PaymentStatus, PaymentType


class PaymentCreate(BaseModel):
     """Request body for POST /payments."""

     property_id: int = Field(..., gt=0)
     unit_id: int = Field(..., gt=0)
     tenant_id: int = Field(..., gt=0)
     invoice_id: Optional[int] = Field(None, gt=0, description="Invoice the payment settles, if any")
     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Amount received")
     payment_date: date
     payment_type: PaymentType = PaymentType.PARTIAL
     payment_mode: PaymentMode
     description: Optional[str] = None
     transaction_id: Optional[str] = Field(None, max_length=100, description="M-Pesa code or bank reference")
     file_url: Optional[str] = Field(None, max_length=500, description="Uploaded receipt")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "property_id": 1,
                    "unit_id": 4,
                    "tenant_id": 7,
                    "invoice_id": 1,
                    "amount": 400.00,
                    "payment_date": "2026-10-20",
                    "payment_type": "partial",
                    "payment_mode": "mpesa",
                    "transaction_id": "SJK8H2L0QP",
               }
          }
     )


class BatchPaymentCreate(BaseModel):
     """One payment spread over several invoices of the same tenant."""

     property_id: int = Field(..., gt=0)
     unit_id: int = Field(..., gt=0)
     tenant_id: int = Field(..., gt=0)
     invoice_ids: List[int] = Field(default_factory=list, description="Empty records one unattached payment")
     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
     payment_date: date
     payment_type: PaymentType
     payment_mode: PaymentMode
     description: Optional[str] = None
     transaction_id: Optional[str] = Field(None, max_length=100)
     file_url: Optional[str] = Field(None, max_length=500)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "property_id": 1,
                    "unit_id": 4,
                    "tenant_id": 7,
                    "invoice_ids": [1, 2],
                    "amount": 2000.00,
                    "payment_date": "2026-10-20",
                    "payment_type": "full",
                    "payment_mode": "bank",
               }
          }
     )


class PaymentResponse(BaseModel):
     """Schema for payment response."""

     id: int
     property_id: int
     unit_id: int
     tenant_id: int
     invoice_id: Optional[int] = None
     amount: Decimal
     payment_date: date
     payment_type: PaymentType
     payment_mode: PaymentMode
     status: PaymentStatus
     description: Optional[str] = None
     transaction_id: Optional[str] = None
     file_url: Optional[str] = None
     created_at: datetime

     model_config = ConfigDict(from_attributes=True)


class PaymentListResponse(BaseModel):
     payments: List[PaymentResponse]
     total: int
     page: int = 1
     page_size: int = 50


class ReceiptUploadResponse(BaseModel):
     file_url: str
