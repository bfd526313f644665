# models/base.py
import re
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import Numeric
from sqlalchemy.orm import DeclarativeBase, declared_attr

CENTS = Decimal("0.01")


def Money():
     """Column type for every monetary amount: 12 digits, 2 decimals."""
     return Numeric(12, 2, asdecimal=True)


def to_money(value) -> Decimal:
     """Normalize a number (or NULL) to a 2-decimal Decimal, rounding half-up."""
     if value is None:
          return Decimal("0.00")
     return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


class Base(DeclarativeBase):
     """
     Base class for all SQLAlchemy models.
     Provides common configuration and mixins.
     """

     @declared_attr.directive
     def __tablename__(cls) -> str:
          """
          Automatically generate table name from class name.
          Example: InvoiceItem -> invoice_items
          """
          name = re.sub(r'(?<!^)(?=[A-Z])', '_', cls.__name__).lower()
          # Pluralize (simple version)
          if name.endswith('y'):
               return name[:-1] + 'ies'
          elif name.endswith('s'):
               return name + 'es'
          return name + 's'


def enum_values(enum_cls):
     """Persist enum values ("draft") rather than member names ("DRAFT")."""
     return [member.value for member in enum_cls]
