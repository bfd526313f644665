# models/billable.py
"""
Billable-item sources - utility readings and deposits.

Both are written by their own entry screens. The billing core reads the rows
that reached ``saved`` and flips them to ``invoiced`` when an invoice line is
created from them.
"""
import enum

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Enum, func
from .base import Base, Money, enum_values


class BillableStatus(str, enum.Enum):
     PENDING = "pending"
     SAVED = "saved"
     INVOICED = "invoiced"


class BillableMixin:
     """Columns shared by every record that can become an invoice line."""

     id = Column(Integer, primary_key=True, autoincrement=True)
     owner_id = Column(Integer, nullable=False, index=True)
     property_id = Column(Integer, nullable=False)
     unit_id = Column(Integer, nullable=False, index=True)
     tenant_id = Column(Integer, nullable=True, index=True)
     amount = Column(Money(), nullable=False)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     def mark_as_invoiced(self) -> None:
          self.status = BillableStatus.INVOICED


class Utility(BillableMixin, Base):
     """Metered or flat-rate utility charge for one unit and month."""

     item = Column(String(50), nullable=False)  # water, electricity, garbage, ...
     month = Column(Integer, nullable=False)
     year = Column(Integer, nullable=False)
     previous_reading = Column(Numeric(12, 2), nullable=True)
     current_reading = Column(Numeric(12, 2), nullable=True)
     consumption = Column(Numeric(12, 2), nullable=True)
     rate = Column(Numeric(12, 2), nullable=False, default=0)
     status = Column(
          Enum(BillableStatus, name="utility_status", create_constraint=True,
               values_callable=enum_values, length=20),
          default=BillableStatus.PENDING,
          nullable=False,
          index=True
     )

     @property
     def description(self) -> str:
          return f"{self.item.title()} {self.month:02d}/{self.year}"

     def __repr__(self):
          return f"<Utility(id={self.id}, item='{self.item}', amount={self.amount}, status='{self.status.value}')>"


class Deposit(BillableMixin, Base):

     type = Column(String(50), nullable=False)  # rent, water, electricity, security, garbage
     date = Column(Date, nullable=False)
     status = Column(
          Enum(BillableStatus, name="deposit_status", create_constraint=True,
               values_callable=enum_values, length=20),
          default=BillableStatus.PENDING,
          nullable=False,
          index=True
     )

     @property
     def description(self) -> str:
          return f"{self.type.title()} deposit"

     def __repr__(self):
          return f"<Deposit(id={self.id}, type='{self.type}', amount={self.amount}, status='{self.status.value}')>"
