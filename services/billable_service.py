# services/billable_service.py
"""
Hand-off with the billable-item sources (utilities and deposits).

Sources are owned by their entry screens. Billing reads the records that reached
``saved`` as invoice-line candidates and, once lines are created from them,
flips them to ``invoiced`` so they cannot be billed a second time.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

import structlog
from sqlalchemy.orm import Session

from errors import IntegrityFailure, ValidationFailure
from models import BillableStatus, Deposit, InvoiceItemType, Utility

logger = structlog.get_logger(__name__)

SOURCE_MODELS = {
     InvoiceItemType.UTILITY: Utility,
     InvoiceItemType.DEPOSIT: Deposit,
}


@dataclass
class ItemDraft:
     """A candidate invoice line, not yet persisted."""
     type: InvoiceItemType
     description: str
     amount: Decimal
     reference_id: Optional[int] = None


def _source_query(db: Session, model, owner_id: int, tenant_id: Optional[int], unit_id: Optional[int]):
     query = db.query(model).filter(model.owner_id == owner_id, model.status == BillableStatus.SAVED)
     if tenant_id is not None:
          query = query.filter(model.tenant_id == tenant_id)
     if unit_id is not None:
          query = query.filter(model.unit_id == unit_id)
     return query.order_by(model.id)


def list_billable_items(
     db: Session,
     owner_id: int,
     tenant_id: Optional[int] = None,
     unit_id: Optional[int] = None,
) -> List[ItemDraft]:
     """Saved utilities and deposits offered as invoice lines, utilities first."""
     drafts = []
     for item_type, model in SOURCE_MODELS.items():
          for record in _source_query(db, model, owner_id, tenant_id, unit_id).all():
               drafts.append(
                    ItemDraft(
                         type=item_type,
                         description=record.description,
                         amount=record.amount,
                         reference_id=record.id,
                    )
               )
     return drafts


def mark_sources_invoiced(db: Session, owner_id: int, drafts: Iterable[ItemDraft]) -> int:
     """
     Flip every referenced source from ``saved`` to ``invoiced``.

     Runs after the invoice items are flushed and inside the same transaction;
     raising here makes the caller roll back the whole invoice.

     Raises:
          IntegrityFailure: a referenced source does not exist for this owner
          ValidationFailure: a referenced source is not in ``saved`` state
     """
     flipped = 0
     for draft in drafts:
          if draft.reference_id is None:
               continue
          model = SOURCE_MODELS[draft.type]
          source = db.query(model).filter(
               model.id == draft.reference_id,
               model.owner_id == owner_id
          ).with_for_update().first()
          if source is None:
               raise IntegrityFailure(
                    f"{draft.type.value.title()} record {draft.reference_id} not found"
               )
          if source.status != BillableStatus.SAVED:
               raise ValidationFailure(
                    f"{draft.type.value.title()} record {draft.reference_id} is "
                    f"'{source.status.value}', only saved records can be invoiced"
               )
          source.mark_as_invoiced()
          flipped += 1

     if flipped:
          db.flush()
          logger.info("Billable sources invoiced", owner_id=owner_id, count=flipped)
     return flipped
