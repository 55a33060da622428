"""Invoice schemas.

Responses carry both the stored status and ``status``, the effective status
that reports sent invoices past their due date as ``OVERDUE``.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field

from invoicing.app.models.invoice import InvoiceStatus
from invoicing.app.schemas.invoice_item import InvoiceItemCreate, InvoiceItemRead
from invoicing.app.schemas.payment_reminder import PaymentReminderRead
from invoicing.app.schemas.user import UserSummary
from invoicing.app.services.lifecycle import derive_status


class InvoiceCreate(BaseModel):
    client_id: int
    due_date: date
    items: List[InvoiceItemCreate] = Field(min_length=1)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, decimal_places=2)
    notes: Optional[str] = None
    is_recurring: bool = False
    recurring_interval: Optional[str] = None


class InvoiceUpdate(BaseModel):
    client_id: Optional[int] = None
    due_date: Optional[date] = None
    items: Optional[List[InvoiceItemCreate]] = Field(default=None, min_length=1)
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100, decimal_places=2)
    notes: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurring_interval: Optional[str] = None


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus


class ClientSummary(BaseModel):
    id: int
    name: str
    email: EmailStr

    model_config = ConfigDict(from_attributes=True)


class ClientContact(ClientSummary):
    phone: Optional[str] = None
    address: Optional[str] = None


class InvoiceListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_number: str
    client_id: int
    stored_status: InvoiceStatus = Field(validation_alias="status")
    issue_date: date
    due_date: date
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    created_at: datetime
    client: Optional[ClientSummary] = None

    @computed_field
    @property
    def status(self) -> InvoiceStatus:
        return derive_status(self.stored_status, self.due_date)


class InvoiceRead(InvoiceListItem):
    owner_id: int
    notes: Optional[str] = None
    is_recurring: bool
    recurring_interval: Optional[str] = None
    updated_at: datetime
    client: Optional[ClientContact] = None
    items: List[InvoiceItemRead] = []
    reminders: List[PaymentReminderRead] = []


class AdminInvoiceRead(InvoiceListItem):
    owner_id: int
    owner: Optional[UserSummary] = None


class MessageResponse(BaseModel):
    message: str
