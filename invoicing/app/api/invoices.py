"""Invoice routes for the authenticated owner."""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from invoicing.app.dependencies.auth import get_mailer, get_tenant_scope
from invoicing.app.models.invoice import InvoiceStatus
from invoicing.app.schemas.invoice import (
    InvoiceCreate,
    InvoiceListItem,
    InvoiceRead,
    InvoiceStatusUpdate,
    InvoiceUpdate,
    MessageResponse,
)
from invoicing.app.services import invoices as invoice_service
from invoicing.app.services.mailer import Mailer
from invoicing.app.services.scoping import TenantScope

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("", response_model=List[InvoiceListItem])
async def list_invoices(
    status: InvoiceStatus | None = None,
    client_id: int | None = None,
    scope: TenantScope = Depends(get_tenant_scope),
):
    return invoice_service.list_invoices(scope, status=status, client_id=client_id)


@router.get("/{invoice_id}", response_model=InvoiceRead)
async def get_invoice(invoice_id: int, scope: TenantScope = Depends(get_tenant_scope)):
    return scope.get_invoice(invoice_id)


@router.post("", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
async def create_invoice(payload: InvoiceCreate, scope: TenantScope = Depends(get_tenant_scope)):
    return invoice_service.create_invoice(scope, payload)


@router.put("/{invoice_id}", response_model=InvoiceRead)
async def update_invoice(invoice_id: int, payload: InvoiceUpdate, scope: TenantScope = Depends(get_tenant_scope)):
    return invoice_service.update_invoice(scope, invoice_id, payload)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(invoice_id: int, scope: TenantScope = Depends(get_tenant_scope)):
    invoice_service.delete_invoice(scope, invoice_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{invoice_id}/status", response_model=InvoiceRead)
async def update_invoice_status(
    invoice_id: int,
    payload: InvoiceStatusUpdate,
    scope: TenantScope = Depends(get_tenant_scope),
):
    return invoice_service.change_status(scope, invoice_id, payload.status)


@router.get("/{invoice_id}/pdf")
async def download_invoice_pdf(invoice_id: int, scope: TenantScope = Depends(get_tenant_scope)):
    filename, content = invoice_service.get_invoice_pdf(scope, invoice_id)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/{invoice_id}/send", response_model=MessageResponse)
async def send_invoice(
    invoice_id: int,
    scope: TenantScope = Depends(get_tenant_scope),
    mailer: Mailer = Depends(get_mailer),
):
    invoice_service.send_invoice(scope, invoice_id, mailer)
    return {"message": "Invoice sent successfully"}


@router.post("/{invoice_id}/remind", response_model=MessageResponse)
async def send_reminder(
    invoice_id: int,
    scope: TenantScope = Depends(get_tenant_scope),
    mailer: Mailer = Depends(get_mailer),
):
    invoice_service.send_reminder(scope, invoice_id, mailer)
    return {"message": "Reminder sent successfully"}
