# models/payment.py
"""
Payment model - money received from a tenant.

Payments are append-only: once confirmed a row is never updated or deleted.
An unattached payment (``invoice_id`` NULL) never affects any invoice.
"""
import enum

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Enum, CheckConstraint, func
from .base import Base, Money, enum_values


class PaymentType(str, enum.Enum):
     FULL = "full"
     PARTIAL = "partial"


class PaymentMode(str, enum.Enum):
     MPESA = "mpesa"
     CASH = "cash"
     BANK = "bank"
     CHEQUE = "cheque"


class PaymentStatus(str, enum.Enum):
     CONFIRMED = "confirmed"


class Payment(Base):

     id = Column(Integer, primary_key=True, autoincrement=True)
     owner_id = Column(Integer, nullable=False, index=True)
     property_id = Column(Integer, nullable=False, index=True)
     unit_id = Column(Integer, nullable=False, index=True)
     tenant_id = Column(Integer, nullable=False, index=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="SET NULL"),
          nullable=True,
          index=True
     )

     amount = Column(Money(), nullable=False)
     payment_date = Column(Date, nullable=False, index=True)
     payment_type = Column(
          Enum(PaymentType, name="payment_type", create_constraint=True,
               values_callable=enum_values, length=20),
          nullable=False
     )
     payment_mode = Column(
          Enum(PaymentMode, name="payment_mode", create_constraint=True,
               values_callable=enum_values, length=20),
          nullable=False
     )
     status = Column(
          Enum(PaymentStatus, name="payment_status", create_constraint=True,
               values_callable=enum_values, length=20),
          default=PaymentStatus.CONFIRMED,
          nullable=False,
          index=True
     )

     description = Column(Text, nullable=True)
     transaction_id = Column(String(100), nullable=True)
     file_url = Column(String(500), nullable=True)  # Receipt in blob storage

     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     __table_args__ = (
          CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
     )

     def __repr__(self):
          return f"<Payment(id={self.id}, invoice_id={self.invoice_id}, amount={self.amount}, mode='{self.payment_mode.value}')>"
