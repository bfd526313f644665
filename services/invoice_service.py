# services/invoice_service.py
"""
Invoice Service - Business logic layer for invoice operations.

This service handles invoice creation, item changes, voiding and status
transitions, separate from the API layer. Every method works inside the
caller's session and only flushes: the router (or get_session_context) owns
the commit, so an exception anywhere rolls the whole operation back.

Every lookup is filtered by ``owner_id``; another owner's rows behave exactly
like missing rows.
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

import structlog
from sqlalchemy.orm import Session

from errors import InvoiceStateFailure, IntegrityFailure, NotFoundFailure, ValidationFailure
from models import (
     Invoice,
     InvoiceItem,
     InvoiceItemStatus,
     InvoiceStatus,
     Tax,
)
from models.base import to_money
from services.billable_service import SOURCE_MODELS, ItemDraft, mark_sources_invoiced
from services.numbering import next_invoice_number, ordinal_of
from services.totals import (
     assert_totals_consistent,
     calculate_tax,
     recompute_invoice_totals,
     total_paid,
)

logger = structlog.get_logger(__name__)

OUTSTANDING_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.OVERDUE)


class InvoiceService:
     """Service class for invoice-related business logic."""

     # ------------------------------------------------------------------
     # Lookups
     # ------------------------------------------------------------------

     @staticmethod
     def get_invoice(db: Session, owner_id: int, invoice_id: int, for_update: bool = False) -> Invoice:
          """
          Fetch one of the owner's invoices.

          Args:
               db: SQLAlchemy database session
               owner_id: Requesting owner
               invoice_id: ID of the invoice
               for_update: Lock the row for the rest of the transaction

          Raises:
               NotFoundFailure: If the invoice doesn't exist for this owner
          """
          query = db.query(Invoice).filter(Invoice.id == invoice_id, Invoice.owner_id == owner_id)
          if for_update:
               query = query.with_for_update()
          invoice = query.first()
          if invoice is None:
               raise NotFoundFailure(f"Invoice with ID {invoice_id} not found")
          return invoice

     @staticmethod
     def _get_mutable_invoice(db: Session, owner_id: int, invoice_id: int) -> Invoice:
          invoice = InvoiceService.get_invoice(db, owner_id, invoice_id, for_update=True)
          if invoice.is_cancelled:
               raise InvoiceStateFailure(
                    f"Invoice {invoice.invoice_number} is cancelled and can no longer be changed"
               )
          return invoice

     @staticmethod
     def get_item(db: Session, owner_id: int, invoice_id: int, item_id: int) -> InvoiceItem:
          item = db.query(InvoiceItem).join(
               Invoice, InvoiceItem.invoice_id == Invoice.id
          ).filter(
               InvoiceItem.id == item_id,
               InvoiceItem.invoice_id == invoice_id,
               Invoice.owner_id == owner_id,
          ).first()
          if item is None:
               raise NotFoundFailure(f"Invoice item with ID {item_id} not found")
          return item

     @staticmethod
     def list_invoices(
          db: Session,
          owner_id: int,
          status: Optional[InvoiceStatus] = None,
          tenant_id: Optional[int] = None,
          property_id: Optional[int] = None,
          unit_id: Optional[int] = None,
          outstanding_only: bool = False,
          page: int = 1,
          page_size: int = 50,
     ) -> Tuple[List[Invoice], int]:
          """
          Page through the owner's invoices, newest due date first.

          Returns:
               (invoices on this page, total matching count)
          """
          query = db.query(Invoice).filter(Invoice.owner_id == owner_id)
          if status is not None:
               query = query.filter(Invoice.status == status)
          if tenant_id is not None:
               query = query.filter(Invoice.tenant_id == tenant_id)
          if property_id is not None:
               query = query.filter(Invoice.property_id == property_id)
          if unit_id is not None:
               query = query.filter(Invoice.unit_id == unit_id)
          if outstanding_only:
               query = query.filter(Invoice.status.in_(OUTSTANDING_STATUSES))

          total = query.count()
          offset = (page - 1) * page_size
          invoices = query.order_by(
               Invoice.due_date.desc(), Invoice.id.desc()
          ).offset(offset).limit(page_size).all()
          return invoices, total

     # ------------------------------------------------------------------
     # Creation
     # ------------------------------------------------------------------

     @staticmethod
     def _validate_draft(draft: ItemDraft) -> None:
          if draft.amount is None or to_money(draft.amount) < 0:
               raise ValidationFailure("Item amount must be zero or greater")
          if not draft.description or not draft.description.strip():
               raise ValidationFailure("Item description is required")
          if draft.reference_id is not None and draft.type not in SOURCE_MODELS:
               raise ValidationFailure(
                    f"Only utility and deposit items can reference a source record, not '{draft.type.value}'"
               )

     @staticmethod
     def _resolve_tax(db: Session, owner_id: int, tax_id: Optional[int]) -> Optional[Tax]:
          if tax_id is None:
               return None
          tax = db.query(Tax).filter(Tax.id == tax_id, Tax.owner_id == owner_id).first()
          if tax is None:
               raise IntegrityFailure(f"Tax with ID {tax_id} not found")
          return tax

     @staticmethod
     def _build_item(draft: ItemDraft) -> InvoiceItem:
          return InvoiceItem(
               type=draft.type,
               description=draft.description.strip(),
               amount=to_money(draft.amount),
               reference_id=draft.reference_id,
               status=InvoiceItemStatus.ACTIVE,
          )

     @staticmethod
     def create_invoice(
          db: Session,
          owner_id: int,
          property_id: int,
          unit_id: int,
          tenant_id: int,
          due_date: date,
          items: Sequence[ItemDraft],
          tax_id: Optional[int] = None,
          today: Optional[date] = None,
     ) -> Invoice:
          """
          Create a draft invoice from item drafts.

          The tenant, unit and property are taken as already validated. Items
          sourced from a utility or deposit flip that record to ``invoiced``
          in the same transaction.

          Args:
               db: SQLAlchemy database session
               owner_id: Owner the invoice belongs to
               property_id, unit_id, tenant_id: Billed tenancy
               due_date: Payment due date
               items: At least one ItemDraft
               tax_id: Optional tax catalog entry applied to the subtotal
               today: Date used in the invoice number (defaults to today)

          Returns:
               Created Invoice object (flushed, not committed)

          Raises:
               ValidationFailure: Empty item set, bad amounts, source not saved
               IntegrityFailure: Tax or source record missing
          """
          if not items:
               raise ValidationFailure("An invoice needs at least one item")
          for draft in items:
               InvoiceService._validate_draft(draft)

          tax = InvoiceService._resolve_tax(db, owner_id, tax_id)
          subtotal = sum((to_money(draft.amount) for draft in items), Decimal("0.00"))
          tax_amount = calculate_tax(subtotal, tax.percentage if tax else None)

          invoice_number = next_invoice_number(db, today)
          invoice = Invoice(
               owner_id=owner_id,
               property_id=property_id,
               unit_id=unit_id,
               tenant_id=tenant_id,
               invoice_number=invoice_number,
               sequence_number=ordinal_of(invoice_number),
               subtotal=subtotal,
               tax_amount=tax_amount,
               total_amount=subtotal + tax_amount,
               tax_id=tax.id if tax else None,
               tax_percentage=tax.percentage if tax else None,
               status=InvoiceStatus.DRAFT,
               due_date=due_date,
          )
          db.add(invoice)
          db.flush()  # Flush to get the ID without committing

          for draft in items:
               invoice.items.append(InvoiceService._build_item(draft))
          db.flush()

          mark_sources_invoiced(db, owner_id, items)
          recompute_invoice_totals(db, invoice)

          logger.info(
               "Invoice created",
               invoice_id=invoice.id,
               invoice_number=invoice.invoice_number,
               owner_id=owner_id,
               tenant_id=tenant_id,
               items=len(items),
               total_amount=str(invoice.total_amount),
          )
          return invoice

     # ------------------------------------------------------------------
     # Item ledger
     # ------------------------------------------------------------------

     @staticmethod
     def add_item(db: Session, owner_id: int, invoice_id: int, draft: ItemDraft) -> InvoiceItem:
          """
          Append an active line to a live invoice and recompute its totals.

          Adding to a paid invoice reopens it as partially_paid.
          """
          InvoiceService._validate_draft(draft)
          invoice = InvoiceService._get_mutable_invoice(db, owner_id, invoice_id)

          item = InvoiceService._build_item(draft)
          invoice.items.append(item)
          db.flush()
          mark_sources_invoiced(db, owner_id, [draft])
          recompute_invoice_totals(db, invoice)
          return item

     @staticmethod
     def void_item(db: Session, owner_id: int, invoice_id: int, item_id: int) -> InvoiceItem:
          """
          Void one line. Its amount leaves the subtotal; tax_amount is kept.

          Voiding an already void item changes nothing.
          """
          invoice = InvoiceService._get_mutable_invoice(db, owner_id, invoice_id)
          item = InvoiceService.get_item(db, owner_id, invoice_id, item_id)
          if item.is_active:
               item.void()
               recompute_invoice_totals(db, invoice)
               logger.info(
                    "Invoice item voided",
                    invoice_number=invoice.invoice_number,
                    item_id=item.id,
                    amount=str(item.amount),
               )
          return item

     @staticmethod
     def delete_item(db: Session, owner_id: int, invoice_id: int, item_id: int) -> Invoice:
          invoice = InvoiceService._get_mutable_invoice(db, owner_id, invoice_id)
          item = InvoiceService.get_item(db, owner_id, invoice_id, item_id)
          invoice.items.remove(item)
          recompute_invoice_totals(db, invoice)
          return invoice

     @staticmethod
     def recalculate(db: Session, owner_id: int, invoice_id: int) -> Invoice:
          """Re-run the totals engine on demand (a no-op when nothing changed)."""
          invoice = InvoiceService._get_mutable_invoice(db, owner_id, invoice_id)
          return recompute_invoice_totals(db, invoice)

     @staticmethod
     def apply_tax(db: Session, owner_id: int, invoice_id: int, tax_id: Optional[int]) -> Invoice:
          """
          Re-apply a tax selection to the current subtotal.

          This is the only way tax_amount changes after creation; pass
          ``tax_id=None`` to remove the tax. A paid invoice whose total grows
          drops back to partially_paid.
          """
          invoice = InvoiceService._get_mutable_invoice(db, owner_id, invoice_id)
          tax = InvoiceService._resolve_tax(db, owner_id, tax_id)

          invoice.tax_id = tax.id if tax else None
          invoice.tax_percentage = tax.percentage if tax else None
          invoice.tax_amount = calculate_tax(invoice.subtotal, invoice.tax_percentage)
          recompute_invoice_totals(db, invoice)
          logger.info(
               "Invoice tax applied",
               invoice_number=invoice.invoice_number,
               tax_id=invoice.tax_id,
               tax_amount=str(invoice.tax_amount),
          )
          return invoice

     # ------------------------------------------------------------------
     # Status transitions
     # ------------------------------------------------------------------

     @staticmethod
     def void_invoice(db: Session, owner_id: int, invoice_id: int) -> Invoice:
          """
          Cancel an invoice: every item becomes void and all amounts drop to 0.

          Unlike voiding a single item this also zeroes tax_amount. Cancelled
          is terminal, so voiding twice is refused.

          Raises:
               InvoiceStateFailure: If the invoice is already cancelled
          """
          invoice = InvoiceService._get_mutable_invoice(db, owner_id, invoice_id)
          for item in invoice.items:
               item.void()
          invoice.cancel()
          db.flush()
          assert_totals_consistent(invoice)

          logger.info(
               "Invoice voided",
               invoice_id=invoice.id,
               invoice_number=invoice.invoice_number,
               owner_id=owner_id,
          )
          return invoice

     @staticmethod
     def mark_sent(db: Session, owner_id: int, invoice_id: int) -> Invoice:
          """Move a draft invoice to ``sent``; any other status is refused."""
          invoice = InvoiceService._get_mutable_invoice(db, owner_id, invoice_id)
          if invoice.status != InvoiceStatus.DRAFT:
               raise InvoiceStateFailure(
                    f"Only draft invoices can be sent; {invoice.invoice_number} is '{invoice.status.value}'"
               )
          invoice.mark_as_sent()
          db.flush()
          logger.info("Invoice sent", invoice_number=invoice.invoice_number, owner_id=owner_id)
          return invoice

     @staticmethod
     def mark_overdue_invoices(db: Session, today: Optional[date] = None, owner_id: Optional[int] = None) -> int:
          """
          Mark all sent or partially paid invoices past their due date as OVERDUE.

          This should be called by a scheduled job daily.

          Args:
               db: SQLAlchemy database session
               today: Reference date (defaults to today)
               owner_id: Restrict the sweep to one owner

          Returns:
               Number of invoices marked as overdue
          """
          today = today or date.today()
          query = db.query(Invoice).filter(
               Invoice.status.in_((InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID)),
               Invoice.due_date < today,
          )
          if owner_id is not None:
               query = query.filter(Invoice.owner_id == owner_id)

          count = 0
          for invoice in query.with_for_update().all():
               invoice.mark_as_overdue()
               count += 1
          db.flush()

          if count:
               logger.info("Invoices marked overdue", count=count, as_of=today.isoformat())
          return count

     @staticmethod
     def delete_invoice(db: Session, owner_id: int, invoice_id: int) -> None:
          """
          Permanently remove an invoice and its items.

          Payments stay, detached (invoice_id becomes NULL). Source records keep
          their ``invoiced`` status.
          """
          invoice = InvoiceService.get_invoice(db, owner_id, invoice_id, for_update=True)
          invoice_number = invoice.invoice_number
          db.delete(invoice)
          db.flush()
          logger.info("Invoice deleted", invoice_number=invoice_number, owner_id=owner_id)

     # ------------------------------------------------------------------
     # Reporting
     # ------------------------------------------------------------------

     @staticmethod
     def balance_due(db: Session, invoice: Invoice) -> Decimal:
          """Outstanding amount, never below zero."""
          return max(to_money(invoice.total_amount) - total_paid(db, invoice.id), Decimal("0.00"))

     @staticmethod
     def calculate_tenant_balance(db: Session, owner_id: int, tenant_id: int) -> dict:
          """
          Calculate what a tenant has been billed and still owes.

          Args:
               db: SQLAlchemy database session
               owner_id: Requesting owner
               tenant_id: ID of the tenant

          Returns:
               Dictionary with balance information
          """
          invoices = db.query(Invoice).filter(
               Invoice.owner_id == owner_id,
               Invoice.tenant_id == tenant_id
          ).all()
          live = [inv for inv in invoices if not inv.is_cancelled]

          by_status = {}
          for status in InvoiceStatus:
               matching = [inv for inv in invoices if inv.status == status]
               by_status[status.value] = {
                    "count": len(matching),
                    "amount": sum((to_money(inv.total_amount) for inv in matching), Decimal("0.00")),
               }

          billed = sum((to_money(inv.total_amount) for inv in live), Decimal("0.00"))
          paid = sum((total_paid(db, inv.id) for inv in live), Decimal("0.00"))

          return {
               "tenant_id": tenant_id,
               "total_invoices": len(invoices),
               "total_billed": billed,
               "total_paid": paid,
               "total_owed": max(billed - paid, Decimal("0.00")),
               "by_status": by_status,
          }
