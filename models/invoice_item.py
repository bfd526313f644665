# models/invoice_item.py
import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, CheckConstraint, func
from sqlalchemy.orm import relationship, validates

from errors import ValidationFailure
from .base import Base, Money, enum_values, to_money


class InvoiceItemType(str, enum.Enum):
     RENT = "rent"
     UTILITY = "utility"
     DEPOSIT = "deposit"
     TAX = "tax"
     OTHER = "other"


class InvoiceItemStatus(str, enum.Enum):
     ACTIVE = "active"
     VOID = "void"


class InvoiceItem(Base):
     """
     One line charge within an invoice.

     The amount is fixed at creation; corrections void the item and add a new
     one. ``reference_id`` points at the utility or deposit the line was billed
     from (lookup only, nothing cascades through it).
     """

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     type = Column(
          Enum(InvoiceItemType, name="invoice_item_type", create_constraint=True,
               values_callable=enum_values, length=20),
          default=InvoiceItemType.OTHER,
          nullable=False,
          index=True
     )
     description = Column(String(255), nullable=False)
     amount = Column(Money(), nullable=False)
     reference_id = Column(Integer, nullable=True)
     status = Column(
          Enum(InvoiceItemStatus, name="invoice_item_status", create_constraint=True,
               values_callable=enum_values, length=20),
          default=InvoiceItemStatus.ACTIVE,
          nullable=False
     )
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     invoice = relationship("Invoice", back_populates="items")

     __table_args__ = (
          CheckConstraint("amount >= 0", name="ck_invoice_items_amount_non_negative"),
     )

     @validates("amount")
     def validate_amount(self, key, value):
          if self.id is not None and to_money(value) != to_money(self.amount):
               raise ValidationFailure(
                    f"Invoice item {self.id} amount is fixed; void it and add a new item instead"
               )
          return value

     def __repr__(self):
          return f"<InvoiceItem(id={self.id}, type='{self.type.value}', amount={self.amount}, status='{self.status.value}')>"

     @property
     def is_active(self) -> bool:
          return self.status == InvoiceItemStatus.ACTIVE

     def void(self) -> None:
          self.status = InvoiceItemStatus.VOID
