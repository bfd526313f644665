# models/invoice.py
import enum
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Enum, Sequence, func
from sqlalchemy.orm import relationship
from .base import Base, Money, enum_values

# Global invoice ordinal; created only on backends with native sequences
invoice_number_seq = Sequence("invoice_number_seq", start=1, increment=1, metadata=Base.metadata)


class InvoiceStatus(str, enum.Enum):
     """Lifecycle of an invoice. ``cancelled`` is terminal."""
     DRAFT = "draft"
     SENT = "sent"
     PAID = "paid"
     PARTIALLY_PAID = "partially_paid"
     OVERDUE = "overdue"
     CANCELLED = "cancelled"


class Invoice(Base):
     """
     Invoice model - billing document aggregating the charges of one tenant/unit.

     ``subtotal``, ``tax_amount`` and ``total_amount`` are derived: they are
     written by the totals engine (services/totals.py) and by invoice voiding,
     never by API callers. ``version`` is the optimistic-lock counter that turns
     a lost update on the same invoice into a StaleDataError.
     """
     __tablename__ = "invoices"

     id = Column(Integer, primary_key=True, autoincrement=True)

     # Ownership scope and informational references (validated upstream)
     owner_id = Column(Integer, nullable=False, index=True)
     property_id = Column(Integer, nullable=False, index=True)
     unit_id = Column(Integer, nullable=False, index=True)
     tenant_id = Column(Integer, nullable=False, index=True)

     invoice_number = Column(String(32), unique=True, nullable=False)
     sequence_number = Column(Integer, unique=True, nullable=False)

     # Derived amounts
     subtotal = Column(Money(), nullable=False, default=0)
     tax_amount = Column(Money(), nullable=False, default=0)
     total_amount = Column(Money(), nullable=False, default=0)

     # Tax selection applied to this invoice (snapshot of the catalog rate)
     tax_id = Column(Integer, ForeignKey("taxes.id", ondelete="SET NULL"), nullable=True)
     tax_percentage = Column(Numeric(5, 2), nullable=True)

     status = Column(
          Enum(
               InvoiceStatus,
               name="invoice_status",
               create_constraint=True,
               values_callable=enum_values,
               length=20,
          ),
          default=InvoiceStatus.DRAFT,
          nullable=False,
          index=True
     )
     due_date = Column(Date, nullable=False, index=True)
     version = Column(Integer, nullable=False)

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

     # Relationships
     items = relationship(
          "InvoiceItem",
          back_populates="invoice",
          cascade="all, delete-orphan",
          passive_deletes=True,
          order_by="InvoiceItem.id",
     )
     tax = relationship("Tax")

     __mapper_args__ = {"version_id_col": version}

     def __repr__(self):
          return f"<Invoice(id={self.id}, number='{self.invoice_number}', total={self.total_amount}, status='{self.status.value}')>"

     @property
     def is_cancelled(self) -> bool:
          return self.status == InvoiceStatus.CANCELLED

     def mark_as_sent(self) -> None:
          self.status = InvoiceStatus.SENT

     def mark_as_overdue(self) -> None:
          """Mark the invoice as overdue."""
          self.status = InvoiceStatus.OVERDUE

     def cancel(self) -> None:
          """Zero every amount and enter the terminal ``cancelled`` state."""
          self.status = InvoiceStatus.CANCELLED
          self.subtotal = Decimal("0.00")
          self.tax_amount = Decimal("0.00")
          self.total_amount = Decimal("0.00")
