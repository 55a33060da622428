from invoicing.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from invoicing.app.models.user import User  # noqa: F401
from invoicing.app.models.client import Client  # noqa: F401
from invoicing.app.models.invoice import Invoice  # noqa: F401
from invoicing.app.models.invoice_item import InvoiceItem  # noqa: F401
from invoicing.app.models.payment_reminder import PaymentReminder  # noqa: F401
