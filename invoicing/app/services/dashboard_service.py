"""Owner dashboard figures. Overdue is always derived, never written back."""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List

from sqlalchemy.orm import selectinload

from invoicing.app.core.time import ensure_utc, utc_today
from invoicing.app.models.invoice import Invoice, InvoiceStatus
from invoicing.app.services import lifecycle
from invoicing.app.services.scoping import TenantScope

RECENT_LIMIT = 5


def sum_totals(invoices: Iterable[Invoice]) -> Decimal:
    return sum((Decimal(str(inv.total)) for inv in invoices if inv.total is not None), Decimal("0.00"))


def month_key(value) -> str:
    return f"{value.year}-{value.month:02d}"


def created_month(value: datetime) -> str:
    """Month key of a stored timestamp, read in UTC."""
    return month_key(ensure_utc(value))


def trailing_month_keys(today: date, months: int) -> List[str]:
    """``months`` keys ending with the month of ``today``, oldest first."""
    keys = []
    year, month = today.year, today.month
    for _ in range(months):
        keys.append(f"{year}-{month:02d}")
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    keys.reverse()
    return keys


def get_stats(scope: TenantScope, today: date | None = None) -> dict:
    today = today or utc_today()
    invoices = scope.invoices()
    paid = invoices.filter(Invoice.status == InvoiceStatus.PAID.value).all()
    overdue = invoices.filter(lifecycle.overdue_filter(today)).all()
    return {
        "total_invoices": invoices.count(),
        "paid_invoices": len(paid),
        "overdue_invoices": len(overdue),
        "pending_invoices": invoices.filter(lifecycle.pending_filter()).count(),
        "total_clients": scope.clients().count(),
        "total_revenue": sum_totals(paid),
        "overdue_amount": sum_totals(overdue),
    }


def get_chart(scope: TenantScope, months: int = 12, today: date | None = None) -> List[dict]:
    today = today or utc_today()
    keys = trailing_month_keys(today, months)
    monthly: Dict[str, Decimal] = {key: Decimal("0.00") for key in keys}
    paid = scope.invoices().filter(Invoice.status == InvoiceStatus.PAID.value).all()
    for invoice in paid:
        key = created_month(invoice.created_at)
        if key in monthly:
            monthly[key] += Decimal(str(invoice.total))
    return [{"month": key, "revenue": monthly[key]} for key in keys]


def get_recent(scope: TenantScope, limit: int = RECENT_LIMIT) -> List[Invoice]:
    return (
        scope.invoices()
        .options(selectinload(Invoice.client))
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .limit(limit)
        .all()
    )


def get_overdue(scope: TenantScope, today: date | None = None) -> List[Invoice]:
    return (
        scope.invoices()
        .options(selectinload(Invoice.client))
        .filter(lifecycle.overdue_filter(today or utc_today()))
        .order_by(Invoice.due_date.asc(), Invoice.id.asc())
        .all()
    )
