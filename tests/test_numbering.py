# tests/test_numbering.py
import re
import threading
from datetime import date

import pytest

from errors import IntegrityFailure, ValidationFailure
from models import BillableStatus, InvoiceItemType
from services.billable_service import ItemDraft
from services.invoice_service import InvoiceService
from services.numbering import (
    InvoiceNumberSequence,
    format_invoice_number,
    next_invoice_number,
    ordinal_of,
    reset_sequence_checkpoint,
)

NUMBER_PATTERN = re.compile(r"^INV-\d{8}-\d{4,}$")


def test_format_pads_ordinal_to_four_digits():
    assert format_invoice_number(42, date(2026, 10, 19)) == "INV-20261019-0042"


def test_format_widens_instead_of_truncating():
    assert format_invoice_number(10000, date(2026, 10, 19)) == "INV-20261019-10000"
    assert format_invoice_number(123456, date(2026, 1, 2)) == "INV-20260102-123456"


@pytest.mark.parametrize("ordinal", [0, -3])
def test_non_positive_ordinal_is_rejected(ordinal):
    with pytest.raises(IntegrityFailure):
        format_invoice_number(ordinal, date(2026, 10, 19))


def test_ordinal_of_reads_counter_back():
    assert ordinal_of("INV-20261019-0042") == 42
    assert ordinal_of("INV-20261019-10000") == 10000


def test_consecutive_numbers_increase(db):
    first = next_invoice_number(db, date(2026, 10, 19))
    second = next_invoice_number(db, date(2026, 10, 19))
    assert first == "INV-20261019-0001"
    assert second == "INV-20261019-0002"


def test_counter_is_global_across_dates(db):
    first = next_invoice_number(db, date(2026, 10, 19))
    second = next_invoice_number(db, date(2026, 10, 20))
    assert NUMBER_PATTERN.match(first)
    assert ordinal_of(second) == ordinal_of(first) + 1
    assert second.startswith("INV-20261020-")


def test_counter_seeds_from_persisted_invoices(db, make_invoice):
    make_invoice()
    make_invoice()
    reset_sequence_checkpoint()
    assert next_invoice_number(db, date(2026, 10, 21)) == "INV-20261021-0003"


def test_rolled_back_creation_leaves_a_gap(db, make_invoice, make_utility):
    first = make_invoice()
    pending = make_utility(status=BillableStatus.PENDING)
    with pytest.raises(ValidationFailure):
        InvoiceService.create_invoice(
            db,
            owner_id=1,
            property_id=3,
            unit_id=4,
            tenant_id=7,
            due_date=date(2026, 11, 5),
            items=[ItemDraft(InvoiceItemType.UTILITY, "Water", pending.amount, pending.id)],
            today=date(2026, 10, 19),
        )
    db.rollback()

    third = make_invoice()
    assert ordinal_of(third.invoice_number) == ordinal_of(first.invoice_number) + 2


def test_concurrent_draws_never_repeat(db):
    sequence = InvoiceNumberSequence()
    assert sequence.next_value(db) == 1

    drawn = []
    lock = threading.Lock()

    def worker():
        values = [sequence.next_value(db) for _ in range(50)]
        with lock:
            drawn.extend(values)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(drawn) == 400
    assert sorted(drawn) == list(range(2, 402))
