"""Admin reporting and cross-tenant listing schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr

from invoicing.app.models.user import UserRole
from invoicing.app.schemas.user import UserSummary


class RecentUser(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: UserRole
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AdminStats(BaseModel):
    total_users: int
    total_invoices: int
    total_clients: int
    total_revenue: Decimal
    monthly_revenue: Decimal
    invoices_by_status: Dict[str, int]
    revenue_by_status: Dict[str, Decimal]
    recent_users: List[RecentUser]


class AdminClientRead(BaseModel):
    id: int
    name: str
    email: EmailStr
    owner: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)
