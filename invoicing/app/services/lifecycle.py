"""Invoice status transitions and the guards that depend on status.

``OVERDUE`` is derived: an open invoice reads as overdue through
:func:`effective_status` exactly when its due date has passed, and the
stored status is never touched. It is not a target of explicit transitions.
"""

import logging
from datetime import date
from typing import Dict, FrozenSet

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from invoicing.app.core.errors import InvoicePolicyError, InvoiceValidationError
from invoicing.app.core.time import utc_today
from invoicing.app.models.invoice import Invoice, InvoiceStatus

logger = logging.getLogger(__name__)

OPEN_STATUSES: FrozenSet[InvoiceStatus] = frozenset({InvoiceStatus.SENT, InvoiceStatus.OVERDUE})
TERMINAL_STATUSES: FrozenSet[InvoiceStatus] = frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED})

ALLOWED_TRANSITIONS: Dict[InvoiceStatus, FrozenSet[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.CANCELLED}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID, InvoiceStatus.SENT, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}


def parse_status(value: str | InvoiceStatus) -> InvoiceStatus:
    if isinstance(value, InvoiceStatus):
        return value
    try:
        return InvoiceStatus((value or "").upper())
    except ValueError as exc:
        raise InvoiceValidationError(f"Invalid status: {value}") from exc


def stored_status(invoice: Invoice) -> InvoiceStatus:
    return parse_status(invoice.status)


def is_past_due(invoice: Invoice, today: date | None = None) -> bool:
    if invoice.due_date is None:
        return False
    return invoice.due_date < (today or utc_today())


def derive_status(status: str | InvoiceStatus, due_date: date | None, today: date | None = None) -> InvoiceStatus:
    current = parse_status(status)
    if current not in OPEN_STATUSES:
        return current
    if due_date is not None and due_date < (today or utc_today()):
        return InvoiceStatus.OVERDUE
    # rows stored as OVERDUE before their due date read as SENT
    return InvoiceStatus.SENT


def effective_status(invoice: Invoice, today: date | None = None) -> InvoiceStatus:
    return derive_status(invoice.status, invoice.due_date, today)


def status_filter(status: str | InvoiceStatus, today: date | None = None) -> ColumnElement:
    """SQL predicate matching invoices whose *effective* status is ``status``."""
    target = parse_status(status)
    today = today or utc_today()
    if target == InvoiceStatus.OVERDUE:
        return overdue_filter(today)
    if target == InvoiceStatus.SENT:
        return and_(
            Invoice.status.in_([s.value for s in OPEN_STATUSES]),
            or_(Invoice.due_date.is_(None), Invoice.due_date >= today),
        )
    return Invoice.status == target.value


def overdue_filter(today: date | None = None) -> ColumnElement:
    today = today or utc_today()
    return and_(
        Invoice.status.in_([s.value for s in OPEN_STATUSES]),
        Invoice.due_date < today,
    )


def pending_filter() -> ColumnElement:
    """Drafts and open invoices, overdue or not."""
    return Invoice.status.in_([InvoiceStatus.DRAFT.value] + [s.value for s in OPEN_STATUSES])


def can_transition(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]


def transition(invoice: Invoice, target: str | InvoiceStatus) -> InvoiceStatus:
    current = stored_status(invoice)
    new_status = parse_status(target)
    if not can_transition(current, new_status):
        raise InvoicePolicyError(
            f"Cannot change invoice status from {current.value} to {new_status.value}"
        )
    if current != new_status:
        invoice.status = new_status.value
        logger.info("Invoice %s status %s -> %s", invoice.invoice_number, current.value, new_status.value)
    return new_status


def mark_paid(invoice: Invoice) -> InvoiceStatus:
    return transition(invoice, InvoiceStatus.PAID)


def ensure_editable(invoice: Invoice) -> None:
    if stored_status(invoice) != InvoiceStatus.DRAFT:
        raise InvoicePolicyError("Can only edit draft invoices")


def ensure_sendable(invoice: Invoice) -> None:
    status = stored_status(invoice)
    if status == InvoiceStatus.PAID:
        raise InvoicePolicyError("Cannot send a paid invoice")
    if status == InvoiceStatus.CANCELLED:
        raise InvoicePolicyError("Cannot send a cancelled invoice")


def mark_sent(invoice: Invoice) -> InvoiceStatus:
    """Move a draft to SENT; re-sending an open invoice keeps its status."""
    ensure_sendable(invoice)
    if stored_status(invoice) == InvoiceStatus.DRAFT:
        return transition(invoice, InvoiceStatus.SENT)
    return stored_status(invoice)


def ensure_remindable(invoice: Invoice) -> None:
    status = stored_status(invoice)
    if status == InvoiceStatus.PAID:
        raise InvoicePolicyError("Cannot send reminder for paid invoice")
    if status == InvoiceStatus.CANCELLED:
        raise InvoicePolicyError("Cannot send reminder for cancelled invoice")
