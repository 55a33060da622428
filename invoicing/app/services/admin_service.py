"""Cross-tenant reporting and listings for admins."""

from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from invoicing.app.core.time import utc_today
from invoicing.app.models.client import Client
from invoicing.app.models.invoice import Invoice, InvoiceStatus
from invoicing.app.models.user import User
from invoicing.app.schemas.user import AdminUserRead
from invoicing.app.services import lifecycle
from invoicing.app.services.dashboard_service import created_month, month_key
from invoicing.app.services.scoping import GlobalScope

RECENT_USERS_LIMIT = 5


def _counts_by_owner(scope: GlobalScope, model) -> Dict[int, int]:
    rows = scope.db.query(model.owner_id, func.count(model.id)).group_by(model.owner_id).all()
    return {owner_id: count for owner_id, count in rows}


def _with_counts(user: User, invoice_counts: Dict[int, int], client_counts: Dict[int, int]) -> AdminUserRead:
    row = AdminUserRead.model_validate(user)
    row.invoice_count = invoice_counts.get(user.id, 0)
    row.client_count = client_counts.get(user.id, 0)
    return row


def list_users(scope: GlobalScope) -> List[AdminUserRead]:
    invoice_counts = _counts_by_owner(scope, Invoice)
    client_counts = _counts_by_owner(scope, Client)
    users = scope.users().order_by(User.created_at.desc(), User.id.desc()).all()
    return [_with_counts(user, invoice_counts, client_counts) for user in users]


def get_user(scope: GlobalScope, user_id: int) -> AdminUserRead:
    user = scope.get_user(user_id)
    return _with_counts(user, _counts_by_owner(scope, Invoice), _counts_by_owner(scope, Client))


def list_invoices(
    scope: GlobalScope,
    status: str | None = None,
    user_id: int | None = None,
    client_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> List[Invoice]:
    query = scope.invoices().options(selectinload(Invoice.client), selectinload(Invoice.owner))
    if status:
        query = query.filter(lifecycle.status_filter(status))
    if user_id is not None:
        query = query.filter(Invoice.owner_id == user_id)
    if client_id is not None:
        query = query.filter(Invoice.client_id == client_id)
    if date_from is not None:
        query = query.filter(Invoice.created_at >= datetime.combine(date_from, time.min, tzinfo=timezone.utc))
    if date_to is not None:
        # inclusive through the end of date_to
        end = datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=timezone.utc)
        query = query.filter(Invoice.created_at < end)
    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def list_clients(scope: GlobalScope) -> List[Client]:
    return scope.clients().options(selectinload(Client.owner)).order_by(Client.name.asc(), Client.id.asc()).all()


def get_stats(scope: GlobalScope, today: date | None = None) -> dict:
    today = today or utc_today()
    counts: Dict[str, int] = defaultdict(int)
    totals: Dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))
    monthly_revenue = Decimal("0.00")
    current_month = month_key(today)

    rows = scope.invoices().with_entities(Invoice.status, Invoice.due_date, Invoice.total, Invoice.created_at).all()
    for status, due_date, total, created_at in rows:
        key = lifecycle.derive_status(status, due_date, today).value
        amount = Decimal(str(total or 0))
        counts[key] += 1
        totals[key] += amount
        if status == InvoiceStatus.PAID.value and created_month(created_at) == current_month:
            monthly_revenue += amount

    recent_users = (
        scope.users().order_by(User.created_at.desc(), User.id.desc()).limit(RECENT_USERS_LIMIT).all()
    )
    return {
        "total_users": scope.users().count(),
        "total_invoices": len(rows),
        "total_clients": scope.clients().count(),
        "total_revenue": totals.get(InvoiceStatus.PAID.value, Decimal("0.00")),
        "monthly_revenue": monthly_revenue,
        "invoices_by_status": dict(counts),
        "revenue_by_status": dict(totals),
        "recent_users": recent_users,
    }
