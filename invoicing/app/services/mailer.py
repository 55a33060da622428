"""Outgoing invoice and reminder emails over SMTP."""

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import List, Optional

from invoicing.app.core.errors import EmailDeliveryError
from invoicing.app.core.settings import get_settings
from invoicing.app.models.invoice import Invoice
from invoicing.app.services.formatting import fmt_date, fmt_money

logger = logging.getLogger(__name__)


@dataclass
class Attachment:
    filename: str
    content: bytes
    maintype: str = "application"
    subtype: str = "pdf"


@dataclass
class Mailer:
    host: Optional[str]
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    sender: str = "Invoice App <noreply@invoiceapp.com>"
    use_tls: bool = True
    timeout: float = 30.0
    sent: List[EmailMessage] = field(default_factory=list, repr=False)

    @classmethod
    def from_settings(cls) -> "Mailer":
        settings = get_settings()
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            sender=settings.smtp_from,
            use_tls=settings.smtp_use_tls,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def build_message(
        self,
        to: str,
        subject: str,
        body: str,
        reply_to: Optional[str] = None,
        attachments: Optional[List[Attachment]] = None,
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        if reply_to:
            message["Reply-To"] = reply_to
        message.set_content(body)
        for attachment in attachments or []:
            message.add_attachment(
                attachment.content,
                maintype=attachment.maintype,
                subtype=attachment.subtype,
                filename=attachment.filename,
            )
        return message

    def send(self, message: EmailMessage) -> None:
        if not self.enabled:
            # Delivery disabled: keep the message for inspection only.
            logger.info("SMTP not configured; skipping email to %s (%s)", message["To"], message["Subject"])
            self.sent.append(message)
            return
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s: %s", message["To"], exc)
            raise EmailDeliveryError("Failed to send email") from exc
        self.sent.append(message)
        logger.info("Sent email to %s (%s)", message["To"], message["Subject"])


def _issuer_name(invoice: Invoice) -> str:
    owner = invoice.owner
    return owner.company_name or owner.name or owner.email


def send_invoice_email(mailer: Mailer, invoice: Invoice, pdf_bytes: bytes) -> EmailMessage:
    symbol = get_settings().currency_symbol
    issuer = _issuer_name(invoice)
    body = "\n".join(
        [
            f"Dear {invoice.client.name},",
            "",
            f"Please find attached invoice {invoice.invoice_number} from {issuer}.",
            "",
            f"Amount due: {fmt_money(invoice.total, symbol)}",
            f"Due date: {fmt_date(invoice.due_date)}",
            "",
            "Thank you for your business!",
            issuer,
        ]
    )
    message = mailer.build_message(
        to=invoice.client.email,
        subject=f"Invoice {invoice.invoice_number} from {issuer}",
        body=body,
        reply_to=invoice.owner.email,
        attachments=[Attachment(filename=f"{invoice.invoice_number}.pdf", content=pdf_bytes)],
    )
    mailer.send(message)
    return message


def send_reminder_email(mailer: Mailer, invoice: Invoice) -> EmailMessage:
    symbol = get_settings().currency_symbol
    issuer = _issuer_name(invoice)
    body = "\n".join(
        [
            f"Dear {invoice.client.name},",
            "",
            f"This is a friendly reminder that invoice {invoice.invoice_number} "
            f"for {fmt_money(invoice.total, symbol)} was due on {fmt_date(invoice.due_date)}.",
            "",
            "If you have already sent payment, please disregard this message.",
            "",
            issuer,
        ]
    )
    message = mailer.build_message(
        to=invoice.client.email,
        subject=f"Payment reminder: invoice {invoice.invoice_number}",
        body=body,
        reply_to=invoice.owner.email,
    )
    mailer.send(message)
    return message
