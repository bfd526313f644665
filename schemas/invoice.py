# schemas/invoice.py
"""
Pydantic schemas for Invoice API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from models import InvoiceItemStatus, InvoiceItemType, InvoiceStatus


class InvoiceItemCreate(BaseModel):
     """One invoice line as submitted by the client."""
     type: InvoiceItemType = Field(..., description="rent, utility, deposit, tax or other")
     description: str = Field(..., min_length=1, max_length=255)
     amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, description="Line amount")
     reference_id: Optional[int] = Field(
          None, gt=0, description="Source utility/deposit record this line bills"
     )

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "type": "utility",
                    "description": "Water 09/2026",
                    "amount": 150.00,
                    "reference_id": 12
               }
          }
     )


class InvoiceCreate(BaseModel):
     """Schema for creating a new invoice."""
     property_id: int = Field(..., gt=0, description="Property ID")
     unit_id: int = Field(..., gt=0, description="Unit ID")
     tenant_id: int = Field(..., gt=0, description="Tenant ID")
     due_date: date = Field(..., description="Payment due date")
     tax_id: Optional[int] = Field(None, gt=0, description="Tax applied to the subtotal")
     items: List[InvoiceItemCreate] = Field(..., min_length=1)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "property_id": 1,
                    "unit_id": 4,
                    "tenant_id": 7,
                    "due_date": "2026-11-05",
                    "tax_id": 1,
                    "items": [
                         {"type": "rent", "description": "Rent 11/2026", "amount": 1000.00},
                         {"type": "utility", "description": "Water 10/2026", "amount": 150.00, "reference_id": 12}
                    ]
               }
          }
     )


class TaxSelection(BaseModel):
     """Tax to (re)apply to the current subtotal; null removes the tax."""
     tax_id: Optional[int] = Field(None, gt=0)


class SendInvoiceRequest(BaseModel):
     """Optional e-mail notification sent with the invoice."""
     notify_email: Optional[EmailStr] = None


class InvoiceItemResponse(BaseModel):
     """Schema for invoice item response."""
     id: int
     type: InvoiceItemType
     description: str
     amount: Decimal
     reference_id: Optional[int] = None
     status: InvoiceItemStatus

     model_config = ConfigDict(from_attributes=True)


class InvoiceResponse(BaseModel):
     """Schema for invoice response."""
     id: int
     invoice_number: str
     property_id: int
     unit_id: int
     tenant_id: int
     subtotal: Decimal
     tax_id: Optional[int] = None
     tax_percentage: Optional[Decimal] = None
     tax_amount: Decimal
     total_amount: Decimal
     status: InvoiceStatus
     due_date: date
     created_at: datetime
     updated_at: datetime
     items: List[InvoiceItemResponse] = []

     # Derived from payments
     amount_paid: Decimal = Decimal("0.00")
     balance_due: Decimal = Decimal("0.00")

     model_config = ConfigDict(
          from_attributes=True,
          json_schema_extra={
               "example": {
                    "id": 1,
                    "invoice_number": "INV-20261019-0001",
                    "property_id": 1,
                    "unit_id": 4,
                    "tenant_id": 7,
                    "subtotal": 1150.00,
                    "tax_id": 1,
                    "tax_percentage": 16.00,
                    "tax_amount": 184.00,
                    "total_amount": 1334.00,
                    "status": "draft",
                    "due_date": "2026-11-05",
                    "created_at": "2026-10-19T10:30:00",
                    "updated_at": "2026-10-19T10:30:00",
                    "items": [],
                    "amount_paid": 0.00,
                    "balance_due": 1334.00
               }
          }
     )


class InvoiceListResponse(BaseModel):
     """Schema for paginated invoice list response."""
     invoices: List[InvoiceResponse]
     total: int
     page: int = 1
     page_size: int = 50

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "invoices": [],
                    "total": 0,
                    "page": 1,
                    "page_size": 50
               }
          }
     )


class StatusBucket(BaseModel):
     count: int
     amount: Decimal


class TenantSummaryResponse(BaseModel):
     """What a tenant has been billed, has paid and still owes."""
     tenant_id: int
     total_invoices: int
     total_billed: Decimal
     total_paid: Decimal
     total_owed: Decimal
     by_status: Dict[str, StatusBucket]


class OverdueSweepResponse(BaseModel):
     marked_overdue: int
