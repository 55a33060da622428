"""Invoice use cases run against a tenant scope."""

import logging
from datetime import date
from typing import Iterable, List, Sequence, Tuple

from sqlalchemy.orm import selectinload

from invoicing.app.core.time import utc_now, utc_today
from invoicing.app.models.invoice import Invoice, InvoiceStatus
from invoicing.app.models.invoice_item import InvoiceItem
from invoicing.app.models.payment_reminder import PaymentReminder
from invoicing.app.schemas.invoice import InvoiceCreate, InvoiceUpdate
from invoicing.app.services import lifecycle
from invoicing.app.services.mailer import Mailer, send_invoice_email, send_reminder_email
from invoicing.app.services.money import InvoiceTotals, calculate_totals
from invoicing.app.services.numbering import next_invoice_number
from invoicing.app.services.pdf import render_invoice_pdf
from invoicing.app.services.scoping import TenantScope

logger = logging.getLogger(__name__)


def _build_items(items: Iterable, line_totals: Sequence) -> List[InvoiceItem]:
    return [
        InvoiceItem(
            position=position,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total=line_total,
        )
        for position, (item, line_total) in enumerate(zip(items, line_totals))
    ]


def _apply_totals(invoice: Invoice, totals: InvoiceTotals) -> None:
    invoice.subtotal = totals.subtotal
    invoice.tax_rate = totals.tax_rate
    invoice.tax_amount = totals.tax_amount
    invoice.total = totals.total


def list_invoices(
    scope: TenantScope,
    status: str | None = None,
    client_id: int | None = None,
    today: date | None = None,
) -> List[Invoice]:
    query = scope.invoices().options(selectinload(Invoice.client))
    if status:
        query = query.filter(lifecycle.status_filter(status, today))
    if client_id is not None:
        query = query.filter(Invoice.client_id == client_id)
    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def create_invoice(scope: TenantScope, payload: InvoiceCreate, today: date | None = None) -> Invoice:
    db = scope.db
    client = scope.get_client(payload.client_id)
    totals = calculate_totals(payload.items, payload.tax_rate)
    issue_date = today or utc_today()

    invoice = Invoice(
        owner_id=scope.owner_id,
        client_id=client.id,
        invoice_number=next_invoice_number(db, scope.owner_id, issue_date),
        status=InvoiceStatus.DRAFT.value,
        issue_date=issue_date,
        due_date=payload.due_date,
        notes=payload.notes,
        is_recurring=payload.is_recurring,
        recurring_interval=payload.recurring_interval,
    )
    _apply_totals(invoice, totals)
    invoice.items = _build_items(payload.items, totals.line_totals)
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    logger.info(
        "Invoice created: %s for client %s, total %s (owner %s)",
        invoice.invoice_number,
        client.id,
        invoice.total,
        scope.owner_id,
    )
    return invoice


def update_invoice(scope: TenantScope, invoice_id: int, payload: InvoiceUpdate) -> Invoice:
    db = scope.db
    invoice = scope.get_invoice(invoice_id)
    lifecycle.ensure_editable(invoice)
    changes = payload.model_dump(exclude_unset=True)

    if payload.client_id is not None:
        invoice.client_id = scope.get_client(payload.client_id).id
    if payload.due_date is not None:
        invoice.due_date = payload.due_date
    if "notes" in changes:
        invoice.notes = payload.notes
    if payload.is_recurring is not None:
        invoice.is_recurring = payload.is_recurring
    if "recurring_interval" in changes:
        invoice.recurring_interval = payload.recurring_interval

    tax_rate = payload.tax_rate if payload.tax_rate is not None else invoice.tax_rate
    if payload.items is not None:
        totals = calculate_totals(payload.items, tax_rate)
        invoice.items = _build_items(payload.items, totals.line_totals)
        _apply_totals(invoice, totals)
    elif payload.tax_rate is not None:
        _apply_totals(invoice, calculate_totals(invoice.items, tax_rate))

    db.commit()
    db.refresh(invoice)
    logger.info("Invoice updated: %s", invoice.invoice_number)
    return invoice


def change_status(scope: TenantScope, invoice_id: int, status: str | InvoiceStatus) -> Invoice:
    invoice = scope.get_invoice(invoice_id)
    lifecycle.transition(invoice, status)
    scope.db.commit()
    scope.db.refresh(invoice)
    return invoice


def delete_invoice(scope: TenantScope, invoice_id: int) -> None:
    invoice = scope.get_invoice(invoice_id)
    number, status = invoice.invoice_number, invoice.status
    scope.db.delete(invoice)
    scope.db.commit()
    logger.info("Invoice deleted: %s (status %s, owner %s)", number, status, scope.owner_id)


def get_invoice_pdf(scope: TenantScope, invoice_id: int) -> Tuple[str, bytes]:
    invoice = scope.get_invoice(invoice_id)
    return f"{invoice.invoice_number}.pdf", render_invoice_pdf(invoice)


def send_invoice(scope: TenantScope, invoice_id: int, mailer: Mailer) -> Invoice:
    invoice = scope.get_invoice(invoice_id)
    lifecycle.ensure_sendable(invoice)
    pdf_bytes = render_invoice_pdf(invoice)
    send_invoice_email(mailer, invoice, pdf_bytes)
    lifecycle.mark_sent(invoice)
    scope.db.commit()
    scope.db.refresh(invoice)
    return invoice


def send_reminder(scope: TenantScope, invoice_id: int, mailer: Mailer) -> PaymentReminder:
    invoice = scope.get_invoice(invoice_id)
    lifecycle.ensure_remindable(invoice)
    send_reminder_email(mailer, invoice)

    now = utc_now()
    reminder = PaymentReminder(invoice_id=invoice.id, status="SENT", scheduled_date=now, sent_at=now)
    scope.db.add(reminder)
    scope.db.commit()
    scope.db.refresh(reminder)
    logger.info("Reminder sent for invoice %s", invoice.invoice_number)
    return reminder
