# schemas/billable.py
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from models import InvoiceItemType


class BillableItemResponse(BaseModel):
     """A saved utility or deposit that can become an invoice line."""
     type: InvoiceItemType
     description: str
     amount: Decimal
     reference_id: Optional[int] = None

     model_config = ConfigDict(from_attributes=True)
