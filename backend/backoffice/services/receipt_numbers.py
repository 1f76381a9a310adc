"""
Receipt number generation.
Numbers look like WHS-20251025-0001: prefix, checkout day, per-day sequence.
"""
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.models.receipt_counter import ReceiptCounter


def get_next_receipt_seq(db: Session, prefix: str, day: str) -> int:
    """
    Return the next sequence number for ``prefix`` on ``day`` (YYYYMMDD).

    The counter row is locked with ``with_for_update()`` so concurrent
    checkouts never share a number. Does not commit: the caller commits once
    the number has been used.
    """
    counter = (
        db.query(ReceiptCounter)
        .filter(ReceiptCounter.prefix == prefix, ReceiptCounter.day == day)
        .with_for_update()
        .first()
    )
    if not counter:
        counter = ReceiptCounter(prefix=prefix, day=day, next_seq=1)
        db.add(counter)
        db.flush()

    current_seq = counter.next_seq
    counter.next_seq += 1
    return current_seq


def generate_receipt_number(db: Session, on: Optional[date] = None, prefix: Optional[str] = None) -> str:
    on = on or datetime.utcnow().date()
    prefix = prefix or settings.receipt_prefix
    day = on.strftime("%Y%m%d")
    seq = get_next_receipt_seq(db, prefix, day)
    return f"{prefix}-{day}-{str(seq).zfill(4)}"
