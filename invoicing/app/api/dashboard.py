"""Dashboard endpoints for the authenticated owner."""

from typing import List

from fastapi import APIRouter, Depends, Query

from invoicing.app.dependencies.auth import get_tenant_scope
from invoicing.app.schemas.dashboard import DashboardStats, MonthlyRevenue
from invoicing.app.schemas.invoice import InvoiceListItem
from invoicing.app.services import dashboard_service
from invoicing.app.services.scoping import TenantScope

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def get_stats(scope: TenantScope = Depends(get_tenant_scope)):
    return dashboard_service.get_stats(scope)


@router.get("/chart", response_model=List[MonthlyRevenue])
async def get_chart(
    months: int = Query(default=12, ge=1, le=60),
    scope: TenantScope = Depends(get_tenant_scope),
):
    """Monthly revenue of paid invoices, oldest month first."""
    return dashboard_service.get_chart(scope, months=months)


@router.get("/recent", response_model=List[InvoiceListItem])
async def get_recent_invoices(scope: TenantScope = Depends(get_tenant_scope)):
    return dashboard_service.get_recent(scope)


@router.get("/overdue", response_model=List[InvoiceListItem])
async def get_overdue_invoices(scope: TenantScope = Depends(get_tenant_scope)):
    return dashboard_service.get_overdue(scope)
