"""Dashboard schemas for owner-level overviews."""

from decimal import Decimal

from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_invoices: int
    paid_invoices: int
    overdue_invoices: int
    pending_invoices: int
    total_clients: int
    total_revenue: Decimal
    overdue_amount: Decimal


class MonthlyRevenue(BaseModel):
    month: str
    revenue: Decimal
