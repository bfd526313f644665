# models/__init__.py
from .base import Base
from .tax import Tax
from .billable import BillableStatus, Utility, Deposit
from .invoice import Invoice, InvoiceStatus
from .invoice_item import InvoiceItem, InvoiceItemStatus, InvoiceItemType
from .payment import Payment, PaymentMode, PaymentStatus, PaymentType

__all__ = [
     "Base",
     "Tax",
     "BillableStatus",
     "Utility",
     "Deposit",
     "Invoice",
     "InvoiceStatus",
     "InvoiceItem",
     "InvoiceItemStatus",
     "InvoiceItemType",
     "Payment",
     "PaymentMode",
     "PaymentStatus",
     "PaymentType",
]
