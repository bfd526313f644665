# schemas/__init__.py
from .billable import BillableItemResponse
from .invoice import (
     InvoiceCreate,
     InvoiceItemCreate,
     InvoiceItemResponse,
     InvoiceListResponse,
     InvoiceResponse,
     OverdueSweepResponse,
     SendInvoiceRequest,
     TaxSelection,
     TenantSummaryResponse,
)
from .payment import (
     BatchPaymentCreate,
     PaymentCreate,
     PaymentListResponse,
     PaymentResponse,
     ReceiptUploadResponse,
)

__all__ = [
     "BillableItemResponse",
     "InvoiceCreate",
     "InvoiceItemCreate",
     "InvoiceItemResponse",
     "InvoiceListResponse",
     "InvoiceResponse",
     "OverdueSweepResponse",
     "SendInvoiceRequest",
     "TaxSelection",
     "TenantSummaryResponse",
     "BatchPaymentCreate",
     "PaymentCreate",
     "PaymentListResponse",
     "PaymentResponse",
     "ReceiptUploadResponse",
]
