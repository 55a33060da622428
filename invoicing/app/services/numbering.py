"""Per-owner sequential invoice numbers of the form INV-YYYY-NNNN."""

import re
from datetime import date
from typing import Tuple

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from invoicing.app.core.time import utc_today
from invoicing.app.models.user import User

INVOICE_NUMBER_PREFIX = "INV"
SEQUENCE_WIDTH = 4
_INVOICE_NUMBER_RE = re.compile(r"^INV-(\d{4})-(\d{4,})$")


def format_invoice_number(year: int, sequence: int) -> str:
    return f"{INVOICE_NUMBER_PREFIX}-{year}-{sequence:0{SEQUENCE_WIDTH}d}"


def parse_invoice_number(value: str) -> Tuple[int, int]:
    match = _INVOICE_NUMBER_RE.match(value or "")
    if not match:
        raise ValueError(f"Malformed invoice number: {value!r}")
    return int(match.group(1)), int(match.group(2))


def next_invoice_number(db: Session, owner_id: int, today: date | None = None) -> str:
    """Reserve the owner's next sequence number inside the caller's transaction.

    The counter is bumped with a single UPDATE so two concurrent creations
    for the same owner cannot read the same value.
    """
    db.execute(
        update(User)
        .where(User.id == owner_id)
        .values(invoice_counter=User.invoice_counter + 1)
        .execution_options(synchronize_session=False)
    )
    sequence = db.execute(select(User.invoice_counter).where(User.id == owner_id)).scalar_one()
    year = (today or utc_today()).year
    return format_invoice_number(year, sequence)
