# services/__init__.py
from .invoice_service import InvoiceService
from .payment_service import PaymentService
from .billable_service import ItemDraft, list_billable_items
from .numbering import next_invoice_number

__all__ = [
     "InvoiceService",
     "PaymentService",
     "ItemDraft",
     "list_billable_items",
     "next_invoice_number",
]
