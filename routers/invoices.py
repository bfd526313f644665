# routers/invoices.py
"""
Invoice API routes.

Every route is scoped to the authenticated owner: invoices of other owners
answer 404 exactly like missing ones. Business failures raised by the services
are turned into JSON by the handlers in errors.py.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_owner_id
from models import Invoice, InvoiceStatus
from schemas.billable import BillableItemResponse
from schemas.invoice import (
     InvoiceCreate,
     InvoiceItemCreate,
     InvoiceListResponse,
     InvoiceResponse,
     OverdueSweepResponse,
     SendInvoiceRequest,
     TaxSelection,
     TenantSummaryResponse,
)
from services.billable_service import ItemDraft, list_billable_items
from services.invoice_service import InvoiceService
from services.totals import total_paid
from utils.email import send_invoice_email

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


def _draft(item: InvoiceItemCreate) -> ItemDraft:
     return ItemDraft(
          type=item.type,
          description=item.description,
          amount=item.amount,
          reference_id=item.reference_id,
     )


@router.post(
     "",
     response_model=InvoiceResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a new invoice"
)
def create_invoice(
     invoice_data: InvoiceCreate,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     """
     Create a draft invoice for a tenant.

     - **items**: at least one line; utility and deposit lines may carry the
       id of the saved record they bill, which is then marked invoiced
     - **tax_id**: optional tax applied to the subtotal
     - **due_date**: payment due date
     """
     invoice = InvoiceService.create_invoice(
          db,
          owner_id=owner_id,
          property_id=invoice_data.property_id,
          unit_id=invoice_data.unit_id,
          tenant_id=invoice_data.tenant_id,
          due_date=invoice_data.due_date,
          items=[_draft(item) for item in invoice_data.items],
          tax_id=invoice_data.tax_id,
     )
     db.commit()
     db.refresh(invoice)

     return _build_invoice_response(invoice, db)


@router.get(
     "",
     response_model=InvoiceListResponse,
     summary="List all invoices with filters"
)
def list_invoices(
     status: Optional[InvoiceStatus] = Query(None, description="Filter by status"),
     tenant_id: Optional[int] = Query(None, description="Filter by tenant ID"),
     property_id: Optional[int] = Query(None, description="Filter by property ID"),
     unit_id: Optional[int] = Query(None, description="Filter by unit ID"),
     outstanding_only: bool = Query(False, description="Only sent, partially paid and overdue invoices"),
     page: int = Query(1, ge=1, description="Page number"),
     page_size: int = Query(50, ge=1, le=100, description="Items per page"),
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     """Retrieve a paginated list of the owner's invoices, newest due date first."""
     invoices, total = InvoiceService.list_invoices(
          db,
          owner_id,
          status=status,
          tenant_id=tenant_id,
          property_id=property_id,
          unit_id=unit_id,
          outstanding_only=outstanding_only,
          page=page,
          page_size=page_size,
     )
     return InvoiceListResponse(
          invoices=[_build_invoice_response(inv, db) for inv in invoices],
          total=total,
          page=page,
          page_size=page_size,
     )


@router.get(
     "/billable-items",
     response_model=List[BillableItemResponse],
     summary="Saved utilities and deposits ready to be invoiced"
)
def get_billable_items(
     tenant_id: Optional[int] = Query(None, description="Filter by tenant ID"),
     unit_id: Optional[int] = Query(None, description="Filter by unit ID"),
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     drafts = list_billable_items(db, owner_id, tenant_id=tenant_id, unit_id=unit_id)
     return [BillableItemResponse.model_validate(draft) for draft in drafts]


@router.post(
     "/mark-overdue",
     response_model=OverdueSweepResponse,
     summary="Mark past-due invoices as overdue"
)
def mark_overdue(
     as_of: Optional[date] = Query(None, description="Reference date, defaults to today"),
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     """Sent and partially paid invoices whose due date has passed become OVERDUE."""
     count = InvoiceService.mark_overdue_invoices(db, today=as_of, owner_id=owner_id)
     db.commit()
     return OverdueSweepResponse(marked_overdue=count)


@router.get(
     "/tenant/{tenant_id}/summary",
     response_model=TenantSummaryResponse,
     summary="Get tenant invoice summary"
)
def get_tenant_invoice_summary(
     tenant_id: int,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     """
     Get summary statistics for a tenant's invoices.

     Returns:
     - Total invoices
     - Total billed, paid and owed (cancelled invoices excluded)
     - Count and amount per status
     """
     return InvoiceService.calculate_tenant_balance(db, owner_id, tenant_id)


@router.get(
     "/{invoice_id}",
     response_model=InvoiceResponse,
     summary="Get invoice by ID"
)
def get_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     invoice = InvoiceService.get_invoice(db, owner_id, invoice_id)
     return _build_invoice_response(invoice, db)


@router.delete(
     "/{invoice_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete an invoice"
)
def delete_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     """
     Permanently delete an invoice and its items.

     Payments made against it are kept but detached.
     """
     InvoiceService.delete_invoice(db, owner_id, invoice_id)
     db.commit()

     return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
     "/{invoice_id}/items",
     response_model=InvoiceResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Add a line to an invoice"
)
def add_invoice_item(
     invoice_id: int,
     item: InvoiceItemCreate,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     InvoiceService.add_item(db, owner_id, invoice_id, _draft(item))
     return _commit_and_respond(db, owner_id, invoice_id)


@router.patch(
     "/{invoice_id}/items/{item_id}/void",
     response_model=InvoiceResponse,
     summary="Void an invoice line"
)
def void_invoice_item(
     invoice_id: int,
     item_id: int,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     """The line stays on the invoice as void; its amount leaves the subtotal."""
     InvoiceService.void_item(db, owner_id, invoice_id, item_id)
     return _commit_and_respond(db, owner_id, invoice_id)


@router.delete(
     "/{invoice_id}/items/{item_id}",
     response_model=InvoiceResponse,
     summary="Remove an invoice line"
)
def delete_invoice_item(
     invoice_id: int,
     item_id: int,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     InvoiceService.delete_item(db, owner_id, invoice_id, item_id)
     return _commit_and_respond(db, owner_id, invoice_id)


@router.post(
     "/{invoice_id}/void",
     response_model=InvoiceResponse,
     summary="Cancel an invoice"
)
def void_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     """Void every line and zero the invoice. Cancelled invoices accept no further changes."""
     InvoiceService.void_invoice(db, owner_id, invoice_id)
     return _commit_and_respond(db, owner_id, invoice_id)


@router.post(
     "/{invoice_id}/tax",
     response_model=InvoiceResponse,
     summary="Apply or remove the invoice tax"
)
def apply_invoice_tax(
     invoice_id: int,
     selection: TaxSelection,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     InvoiceService.apply_tax(db, owner_id, invoice_id, selection.tax_id)
     return _commit_and_respond(db, owner_id, invoice_id)


@router.post(
     "/{invoice_id}/recalculate",
     response_model=InvoiceResponse,
     summary="Recompute invoice totals from its lines"
)
def recalculate_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     InvoiceService.recalculate(db, owner_id, invoice_id)
     return _commit_and_respond(db, owner_id, invoice_id)


@router.patch(
     "/{invoice_id}/send",
     response_model=InvoiceResponse,
     summary="Mark invoice as sent"
)
def send_invoice(
     invoice_id: int,
     body: Optional[SendInvoiceRequest] = None,
     db: Session = Depends(get_session),
     owner_id: int = Depends(get_owner_id)
):
     """
     Move a draft invoice to SENT.

     With **notify_email** the invoice is also e-mailed; if the mail cannot be
     delivered the invoice stays a draft.
     """
     invoice = InvoiceService.mark_sent(db, owner_id, invoice_id)
     if body is not None and body.notify_email:
          send_invoice_email(body.notify_email, invoice)
     return _commit_and_respond(db, owner_id, invoice_id)


def _commit_and_respond(db: Session, owner_id: int, invoice_id: int) -> InvoiceResponse:
     db.commit()
     invoice = InvoiceService.get_invoice(db, owner_id, invoice_id)
     db.refresh(invoice)
     return _build_invoice_response(invoice, db)


def _build_invoice_response(invoice: Invoice, db: Session) -> InvoiceResponse:
     """
     Helper function to build InvoiceResponse with payment data.
     """
     response = InvoiceResponse.model_validate(invoice)
     response.amount_paid = total_paid(db, invoice.id)
     response.balance_due = InvoiceService.balance_due(db, invoice)
     return response
