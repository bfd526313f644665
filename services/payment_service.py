# services/payment_service.py
"""
Payment Service - records payments and keeps invoice status in step.

Payments are append-only. Right after each insert, inside the same
transaction, the invoice's confirmed payments are summed and its status is
re-derived:

     total_paid >= total_amount      -> paid
     0 < total_paid < total_amount   -> partially_paid
     total_paid == 0                 -> unchanged

Overpayment is accepted (the invoice simply stays ``paid``) and logged. The
derivation itself lives in services/totals.py, which also runs it whenever the
total of an invoice that already received money changes.
"""
from datetime import date
from decimal import Decimal, ROUND_DOWN
from typing import List, Optional, Sequence, Tuple

import structlog
from sqlalchemy.orm import Session

from errors import InvoiceStateFailure, NotFoundFailure, ValidationFailure
from models import Invoice, Payment, PaymentMode, PaymentStatus, PaymentType
from models.base import CENTS, to_money
from services.invoice_service import InvoiceService
from services.totals import derive_payment_status

logger = structlog.get_logger(__name__)


class PaymentService:
     """Service class for payment-related business logic."""

     @staticmethod
     def apply_payment_status(db: Session, invoice: Invoice) -> Invoice:
          """
          Re-derive an invoice's status from its confirmed payments.

          Must run as the last step of the transaction that inserted the
          payment. A cancelled invoice is never touched.
          """
          if invoice.is_cancelled:
               raise InvoiceStateFailure(
                    f"Invoice {invoice.invoice_number} is cancelled; its status cannot change"
               )

          return derive_payment_status(db, invoice)

     @staticmethod
     def record_payment(
          db: Session,
          owner_id: int,
          amount: Decimal,
          payment_date: date,
          payment_type: PaymentType,
          payment_mode: PaymentMode,
          property_id: int,
          unit_id: int,
          tenant_id: int,
          invoice_id: Optional[int] = None,
          description: Optional[str] = None,
          transaction_id: Optional[str] = None,
          file_url: Optional[str] = None,
     ) -> Payment:
          """
          Record one confirmed payment, optionally against an invoice.

          A ``full`` payment's coverage is checked by the caller (see
          record_batch_payment); here only the amount itself is validated.

          Returns:
               Created Payment object (flushed, not committed)

          Raises:
               ValidationFailure: If amount is not positive
               NotFoundFailure: If the invoice doesn't exist for this owner
               InvoiceStateFailure: If the invoice is cancelled
          """
          if amount is None or to_money(amount) <= 0:
               raise ValidationFailure("Payment amount must be greater than zero")

          invoice = None
          if invoice_id is not None:
               invoice = InvoiceService.get_invoice(db, owner_id, invoice_id, for_update=True)
               if invoice.is_cancelled:
                    raise InvoiceStateFailure(
                         f"Invoice {invoice.invoice_number} is cancelled and cannot take payments"
                    )

          payment = Payment(
               owner_id=owner_id,
               property_id=property_id,
               unit_id=unit_id,
               tenant_id=tenant_id,
               invoice_id=invoice_id,
               amount=to_money(amount),
               payment_date=payment_date,
               payment_type=payment_type,
               payment_mode=payment_mode,
               status=PaymentStatus.CONFIRMED,
               description=description,
               transaction_id=transaction_id,
               file_url=file_url,
          )
          db.add(payment)
          db.flush()

          if invoice is not None:
               PaymentService.apply_payment_status(db, invoice)

          logger.info(
               "Payment recorded",
               payment_id=payment.id,
               owner_id=owner_id,
               invoice_number=invoice.invoice_number if invoice else None,
               amount=str(payment.amount),
               mode=payment_mode.value,
               invoice_status=invoice.status.value if invoice else None,
          )
          return payment

     @staticmethod
     def _split_evenly(amount: Decimal, parts: int) -> List[Decimal]:
          """Split into cent amounts; the last share takes the remainder."""
          share = (amount / parts).quantize(CENTS, rounding=ROUND_DOWN)
          shares = [share] * (parts - 1)
          shares.append(amount - share * (parts - 1))
          return shares

     @staticmethod
     def record_batch_payment(
          db: Session,
          owner_id: int,
          invoice_ids: Sequence[int],
          amount: Decimal,
          payment_date: date,
          payment_type: PaymentType,
          payment_mode: PaymentMode,
          property_id: int,
          unit_id: int,
          tenant_id: int,
          description: Optional[str] = None,
          transaction_id: Optional[str] = None,
          file_url: Optional[str] = None,
     ) -> List[Payment]:
          """
          Spread one submitted payment over several invoices.

          - full: ``amount`` must cover the outstanding balance of every selected
            invoice; each invoice receives exactly its outstanding balance.
          - partial: ``amount`` is split evenly (cent remainder on the last one).
          - no invoices selected: one unattached payment is recorded.

          Raises:
               ValidationFailure: Non-positive amount, duplicate selection, a full
                    payment that does not cover the selection, a selected
                    invoice that is already settled, or a partial amount that
                    cannot give every invoice at least one cent
          """
          amount = to_money(amount)
          if amount <= 0:
               raise ValidationFailure("Payment amount must be greater than zero")

          common = dict(
               owner_id=owner_id,
               payment_date=payment_date,
               payment_type=payment_type,
               payment_mode=payment_mode,
               property_id=property_id,
               unit_id=unit_id,
               tenant_id=tenant_id,
               description=description,
               transaction_id=transaction_id,
               file_url=file_url,
          )

          if not invoice_ids:
               return [PaymentService.record_payment(db, amount=amount, **common)]
          if len(set(invoice_ids)) != len(invoice_ids):
               raise ValidationFailure("An invoice was selected more than once")
          if payment_type != PaymentType.FULL and amount < CENTS * len(invoice_ids):
               raise ValidationFailure(
                    f"Partial payment amount {amount} is too small to give each of the "
                    f"{len(invoice_ids)} selected invoices at least {CENTS}"
               )

          invoices = [
               InvoiceService.get_invoice(db, owner_id, invoice_id, for_update=True)
               for invoice_id in invoice_ids
          ]

          if payment_type == PaymentType.FULL:
               balances = [InvoiceService.balance_due(db, invoice) for invoice in invoices]
               settled = [inv.invoice_number for inv, balance in zip(invoices, balances) if balance <= 0]
               if settled:
                    raise ValidationFailure(f"Invoices already settled: {', '.join(settled)}")
               outstanding = sum(balances, Decimal("0.00"))
               if amount < outstanding:
                    raise ValidationFailure(
                         f"Full payment amount {amount} must cover all selected invoices ({outstanding})"
                    )
               shares = balances
          else:
               shares = PaymentService._split_evenly(amount, len(invoices))

          return [
               PaymentService.record_payment(db, amount=share, invoice_id=invoice.id, **common)
               for invoice, share in zip(invoices, shares)
          ]

     @staticmethod
     def get_payment(db: Session, owner_id: int, payment_id: int) -> Payment:
          payment = db.query(Payment).filter(
               Payment.id == payment_id,
               Payment.owner_id == owner_id
          ).first()
          if payment is None:
               raise NotFoundFailure(f"Payment with ID {payment_id} not found")
          return payment

     @staticmethod
     def list_payments(
          db: Session,
          owner_id: int,
          invoice_id: Optional[int] = None,
          tenant_id: Optional[int] = None,
          page: int = 1,
          page_size: int = 50,
     ) -> Tuple[List[Payment], int]:
          query = db.query(Payment).filter(Payment.owner_id == owner_id)
          if invoice_id is not None:
               query = query.filter(Payment.invoice_id == invoice_id)
          if tenant_id is not None:
               query = query.filter(Payment.tenant_id == tenant_id)

          total = query.count()
          offset = (page - 1) * page_size
          payments = query.order_by(
               Payment.payment_date.desc(), Payment.id.desc()
          ).offset(offset).limit(page_size).all()
          return payments, total
