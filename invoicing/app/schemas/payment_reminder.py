"""Payment reminder schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PaymentReminderRead(BaseModel):
    id: int
    invoice_id: int
    status: str
    scheduled_date: datetime
    sent_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
