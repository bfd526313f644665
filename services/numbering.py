# services/numbering.py
"""
Invoice Numbering Service.

Invoice numbers look like ``INV-20261019-0042``: the generation date followed
by an ordinal drawn from ONE counter shared by every owner. Ordinals are never
handed out twice; a creation that rolls back simply leaves a gap.

Where the database has native sequences (MS SQL Server, PostgreSQL) the
ordinal comes from ``invoice_number_seq``, whose increments survive rollback.
Elsewhere (SQLite in development and tests) a process-wide counter guarded by
a lock is seeded once from ``MAX(invoices.sequence_number)``; the persisted
``sequence_number`` column is its checkpoint.
"""
import threading
from datetime import date
from typing import Optional

import structlog
from sqlalchemy import func
from sqlalchemy.orm import Session

from errors import IntegrityFailure
from models import Invoice
from models.invoice import invoice_number_seq

logger = structlog.get_logger(__name__)

INVOICE_NUMBER_PREFIX = "INV"
ORDINAL_WIDTH = 4
MAX_PADDED_ORDINAL = 10 ** ORDINAL_WIDTH - 1

def format_invoice_number(ordinal: int, on: date) -> str:
     """
     Build the human-readable number for an ordinal.

     Ordinals past 9999 widen instead of being truncated, so a busy counter
     never produces a number that was already issued.
     """
     if ordinal <= 0:
          raise IntegrityFailure(f"Invoice number counter returned invalid value {ordinal}")
     if ordinal > MAX_PADDED_ORDINAL:
          logger.warning(
               "Invoice ordinal exceeds padded width",
               ordinal=ordinal,
               width=ORDINAL_WIDTH,
          )
     return f"{INVOICE_NUMBER_PREFIX}-{on:%Y%m%d}-{ordinal:0{ORDINAL_WIDTH}d}"


class InvoiceNumberSequence:
     """Global, monotonic source of invoice ordinals."""

     def __init__(self):
          self._lock = threading.Lock()
          self._last: Optional[int] = None

     def next_value(self, db: Session) -> int:
          if db.get_bind().dialect.supports_sequences:
               return int(db.query(invoice_number_seq.next_value()).scalar())
          return self._next_local(db)

     def _next_local(self, db: Session) -> int:
          with self._lock:
               if self._last is None:
                    self._last = db.query(func.max(Invoice.sequence_number)).scalar() or 0
               self._last += 1
               return self._last

     def reset(self) -> None:
          """Forget the in-process checkpoint; the next draw re-reads storage."""
          with self._lock:
               self._last = None


_sequence = InvoiceNumberSequence()


def next_invoice_number(db: Session, today: Optional[date] = None) -> str:
     """
     Draw the next invoice number.

     Call exactly once per invoice creation, before the invoice is persisted.
     """
     ordinal = _sequence.next_value(db)
     invoice_number = format_invoice_number(ordinal, today or date.today())
     logger.debug("Invoice number issued", invoice_number=invoice_number)
     return invoice_number


def ordinal_of(invoice_number: str) -> int:
     """Recover the counter value from an issued number."""
     return int(invoice_number.rsplit("-", 1)[1])


def reset_sequence_checkpoint() -> None:
     _sequence.reset()
