# services/totals.py
"""
Totals engine - keeps an invoice's derived amounts in step with its items.

``recompute_invoice_totals`` is called at the end of every item mutation
(insert, void, delete) and tax change inside the same transaction, so any later
read in that transaction already sees the new totals. It touches ``subtotal``,
``total_amount`` and, once money has been received, the payment-derived status.
``tax_amount`` changes solely through an explicit tax application
(InvoiceService.apply_tax) or invoice voiding.

Status follows the confirmed payments and the current total:

     total_paid >= total_amount      -> paid
     0 < total_paid < total_amount   -> partially_paid
     total_paid == 0                 -> unchanged

A paid invoice whose total grows goes back to partially_paid.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import structlog
from sqlalchemy import func
from sqlalchemy.orm import Session

from errors import ConsistencyFailure
from models import Invoice, InvoiceItem, InvoiceItemStatus, InvoiceStatus, Payment, PaymentStatus
from models.base import CENTS, to_money

logger = structlog.get_logger(__name__)


def calculate_tax(subtotal: Decimal, percentage: Optional[Decimal]) -> Decimal:
     """
     Tax for a subtotal at a catalog percentage.

     Rounded half-up to whole cents: 100.005 -> 100.01, 100.004 -> 100.00.
     """
     if percentage is None:
          return Decimal("0.00")
     raw = to_money(subtotal) * Decimal(str(percentage)) / Decimal(100)
     return raw.quantize(CENTS, rounding=ROUND_HALF_UP)


def active_items_subtotal(db: Session, invoice_id: int) -> Decimal:
     """Σ amount over the invoice's active items, 0.00 when there are none."""
     total = db.query(func.coalesce(func.sum(InvoiceItem.amount), 0)).filter(
          InvoiceItem.invoice_id == invoice_id,
          InvoiceItem.status == InvoiceItemStatus.ACTIVE,
     ).scalar()
     return to_money(total)


def recompute_invoice_totals(db: Session, invoice: Invoice) -> Invoice:
     """
     Re-derive subtotal and total from the live set of active items.

     Pending item changes are flushed first so the SUM sees them. Running it
     twice with no item change in between is a no-op. The status of an invoice
     that already received money is re-derived against the new total.
     """
     db.flush()
     subtotal = active_items_subtotal(db, invoice.id)
     invoice.subtotal = subtotal
     invoice.total_amount = subtotal + to_money(invoice.tax_amount)
     db.flush()

     logger.debug(
          "Invoice totals recomputed",
          invoice_id=invoice.id,
          subtotal=str(invoice.subtotal),
          tax_amount=str(invoice.tax_amount),
          total_amount=str(invoice.total_amount),
     )
     assert_totals_consistent(invoice)
     if not invoice.is_cancelled:
          derive_payment_status(db, invoice)
     return invoice


def assert_totals_consistent(invoice: Invoice) -> None:
     """
     Raise ConsistencyFailure when total != subtotal + tax or an amount is negative.

     A mismatch here means a code path bypassed the totals engine.
     """
     subtotal = to_money(invoice.subtotal)
     tax_amount = to_money(invoice.tax_amount)
     total_amount = to_money(invoice.total_amount)

     if min(subtotal, tax_amount, total_amount) < 0:
          raise ConsistencyFailure(
               f"Invoice {invoice.invoice_number} has a negative amount "
               f"(subtotal={subtotal}, tax={tax_amount}, total={total_amount})"
          )
     if total_amount != subtotal + tax_amount:
          raise ConsistencyFailure(
               f"Invoice {invoice.invoice_number} total {total_amount} "
               f"!= subtotal {subtotal} + tax {tax_amount}"
          )


def derive_payment_status(db: Session, invoice: Invoice) -> Invoice:
     """
     Set paid or partially_paid from the confirmed payments.

     Invoices that received nothing keep their status. Overpayment is accepted
     and logged with its surplus.
     """
     db.flush()
     paid = total_paid(db, invoice.id)
     if paid <= 0:
          return invoice

     total_amount = to_money(invoice.total_amount)
     if paid >= total_amount:
          invoice.status = InvoiceStatus.PAID
          if paid > total_amount:
               logger.warning(
                    "Invoice overpaid",
                    invoice_number=invoice.invoice_number,
                    total_amount=str(total_amount),
                    total_paid=str(paid),
                    surplus=str(paid - total_amount),
               )
     else:
          invoice.status = InvoiceStatus.PARTIALLY_PAID
     db.flush()
     return invoice


def total_paid(db: Session, invoice_id: int) -> Decimal:
     """Σ amount of the confirmed payments attached to an invoice."""
     paid = db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
          Payment.invoice_id == invoice_id,
          Payment.status == PaymentStatus.CONFIRMED,
     ).scalar()
     return to_money(paid)
