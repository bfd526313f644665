# models/tax.py
from sqlalchemy import Column, Integer, String, Numeric, DateTime, CheckConstraint, func
from .base import Base


class Tax(Base):
     """
     Tax catalog entry - a named percentage the owner can apply to an invoice.
     Maintained by the tax screens; the billing core only reads it.
     """
     __tablename__ = "taxes"

     id = Column(Integer, primary_key=True, autoincrement=True)
     owner_id = Column(Integer, nullable=False, index=True)
     name = Column(String(100), nullable=False)
     percentage = Column(Numeric(5, 2), nullable=False)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     __table_args__ = (
          CheckConstraint("percentage >= 0 AND percentage <= 100", name="ck_taxes_percentage_range"),
     )

     def __repr__(self):
          return f"<Tax(id={self.id}, name='{self.name}', percentage={self.percentage})>"
