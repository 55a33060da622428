"""Admin endpoints: cross-tenant statistics, invoices and clients."""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends

from invoicing.app.dependencies.auth import get_global_scope
from invoicing.app.models.invoice import InvoiceStatus
from invoicing.app.schemas.admin import AdminClientRead, AdminStats
from invoicing.app.schemas.invoice import AdminInvoiceRead
from invoicing.app.services import admin_service
from invoicing.app.services.scoping import GlobalScope

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats", response_model=AdminStats)
async def get_admin_stats(scope: GlobalScope = Depends(get_global_scope)):
    return admin_service.get_stats(scope)


@router.get("/invoices", response_model=List[AdminInvoiceRead])
async def list_all_invoices(
    status: InvoiceStatus | None = None,
    user_id: int | None = None,
    client_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    scope: GlobalScope = Depends(get_global_scope),
):
    return admin_service.list_invoices(
        scope,
        status=status,
        user_id=user_id,
        client_id=client_id,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/clients", response_model=List[AdminClientRead])
async def list_all_clients(scope: GlobalScope = Depends(get_global_scope)):
    return admin_service.list_clients(scope)
