"""Request dependencies: current user, admin gate and data-access scopes."""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from invoicing.app.core.security import decode_access_token
from invoicing.app.db.session import get_db
from invoicing.app.models.user import User
from invoicing.app.services.mailer import Mailer
from invoicing.app.services.scoping import GlobalScope, TenantScope


def _unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(db: Session = Depends(get_db), authorization: str | None = Header(default=None)) -> User:
    # Expect Authorization: Bearer <token>
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthorized()
    token = authorization.split(" ", 1)[1]
    try:
        payload = decode_access_token(token)
    except ValueError:
        raise _unauthorized("Invalid token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise _unauthorized("Invalid token")
    return user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


def get_tenant_scope(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)) -> TenantScope:
    return TenantScope(db, current_user)


def get_global_scope(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)) -> GlobalScope:
    return GlobalScope(db, current_admin)


def get_mailer() -> Mailer:
    return Mailer.from_settings()
