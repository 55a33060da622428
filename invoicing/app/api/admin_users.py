"""Admin user management endpoints."""

from fastapi import APIRouter, Depends, Response, status

from invoicing.app.dependencies.auth import get_global_scope
from invoicing.app.schemas.user import AdminUserRead, AdminUserUpdate
from invoicing.app.services import admin_service
from invoicing.app.services.scoping import GlobalScope

router = APIRouter(prefix="/admin/users", tags=["admin"])


@router.get("", response_model=list[AdminUserRead])
async def list_users(scope: GlobalScope = Depends(get_global_scope)):
    return admin_service.list_users(scope)


@router.get("/{user_id}", response_model=AdminUserRead)
async def get_user(user_id: int, scope: GlobalScope = Depends(get_global_scope)):
    return admin_service.get_user(scope, user_id)


@router.put("/{user_id}", response_model=AdminUserRead)
async def update_user(user_id: int, update: AdminUserUpdate, scope: GlobalScope = Depends(get_global_scope)):
    scope.update_user(user_id, update.model_dump(exclude_unset=True))
    return admin_service.get_user(scope, user_id)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: int, scope: GlobalScope = Depends(get_global_scope)):
    scope.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
