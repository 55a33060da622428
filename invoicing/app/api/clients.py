"""Client routes, scoped to the caller's own clients."""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from invoicing.app.dependencies.auth import get_tenant_scope
from invoicing.app.models.client import Client
from invoicing.app.models.invoice import Invoice
from invoicing.app.schemas.client import ClientCreate, ClientDetail, ClientRead, ClientUpdate
from invoicing.app.services.scoping import TenantScope

router = APIRouter(prefix="/clients", tags=["clients"])

RECENT_INVOICES_LIMIT = 10


@router.get("", response_model=List[ClientRead])
async def list_clients(scope: TenantScope = Depends(get_tenant_scope)):
    return scope.clients().order_by(Client.created_at.desc(), Client.id.desc()).all()


@router.get("/{client_id}", response_model=ClientDetail)
async def get_client(client_id: int, scope: TenantScope = Depends(get_tenant_scope)):
    client = scope.get_client(client_id)
    recent = (
        scope.invoices()
        .filter(Invoice.client_id == client.id)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .limit(RECENT_INVOICES_LIMIT)
        .all()
    )
    detail = ClientRead.model_validate(client).model_dump()
    detail["invoices"] = recent
    return detail


@router.post("", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
async def create_client(payload: ClientCreate, scope: TenantScope = Depends(get_tenant_scope)):
    client = Client(owner_id=scope.owner_id, **payload.model_dump())
    scope.db.add(client)
    scope.db.commit()
    scope.db.refresh(client)
    return client


@router.put("/{client_id}", response_model=ClientRead)
async def update_client(client_id: int, payload: ClientUpdate, scope: TenantScope = Depends(get_tenant_scope)):
    client = scope.get_client(client_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None or field in ("phone", "address"):
            setattr(client, field, value)
    scope.db.commit()
    scope.db.refresh(client)
    return client


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(client_id: int, scope: TenantScope = Depends(get_tenant_scope)):
    client = scope.get_client(client_id)
    scope.db.delete(client)
    scope.db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
