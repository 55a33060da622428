"""Data-access capabilities selected when a request is authenticated.

A :class:`TenantScope` only ever sees rows owned by its user; records of
other tenants are reported as missing rather than forbidden so their
existence does not leak. A :class:`GlobalScope` is handed to admins and
reads across every tenant.
"""

import logging
from typing import Any, Mapping

from sqlalchemy.orm import Query, Session

from invoicing.app.core.errors import AppError, InvoicePolicyError, NotFoundError
from invoicing.app.models.client import Client
from invoicing.app.models.invoice import Invoice
from invoicing.app.models.user import User, UserRole

logger = logging.getLogger(__name__)

ADMIN_EDITABLE_USER_FIELDS = ("name", "email", "role", "company_name", "address", "phone")


class TenantScope:
    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    @property
    def owner_id(self) -> int:
        return self.user.id

    def clients(self) -> Query:
        return self.db.query(Client).filter(Client.owner_id == self.owner_id)

    def invoices(self) -> Query:
        return self.db.query(Invoice).filter(Invoice.owner_id == self.owner_id)

    def get_client(self, client_id: int) -> Client:
        client = self.clients().filter(Client.id == client_id).first()
        if not client:
            raise NotFoundError("Client not found")
        return client

    def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.invoices().filter(Invoice.id == invoice_id).first()
        if not invoice:
            raise NotFoundError("Invoice not found")
        return invoice


class GlobalScope:
    def __init__(self, db: Session, admin: User):
        self.db = db
        self.admin = admin

    def users(self) -> Query:
        return self.db.query(User)

    def clients(self) -> Query:
        return self.db.query(Client)

    def invoices(self) -> Query:
        return self.db.query(Invoice)

    def get_user(self, user_id: int) -> User:
        user = self.users().filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_user(self, user_id: int, changes: Mapping[str, Any]) -> User:
        if user_id == self.admin.id and changes.get("role") is not None:
            raise InvoicePolicyError("Cannot change your own role")
        user = self.get_user(user_id)

        new_email = changes.get("email")
        if new_email and new_email != user.email:
            taken = self.users().filter(User.email == new_email, User.id != user.id).first()
            if taken:
                raise AppError("Email already registered", status_code=400)

        for field in ADMIN_EDITABLE_USER_FIELDS:
            value = changes.get(field)
            if value is None:
                continue
            if field == "role":
                value = UserRole(value).value
            setattr(user, field, value)
        self.db.commit()
        self.db.refresh(user)
        logger.info("Admin %s updated user %s", self.admin.id, user.id)
        return user

    def delete_user(self, user_id: int) -> None:
        if user_id == self.admin.id:
            raise InvoicePolicyError("Cannot delete your own account")
        user = self.get_user(user_id)
        self.db.delete(user)
        self.db.commit()
        logger.info("Admin %s deleted user %s", self.admin.id, user_id)
