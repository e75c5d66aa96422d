"""Delivery of reminder notification batches.

The reminder run only assembles batches; a notifier decides how they leave
the process. ``LogNotifier`` writes them to the structured log,
``SmtpNotifier`` sends a plain-text e-mail per batch.
"""

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from financeapp.domain.value_objects import NotificationBatch
from financeapp.exceptions import ConfigurationError, NotificationDeliveryError
from financeapp.utils.config import Settings
from financeapp.utils.logging import get_logger

logger = get_logger(__name__)


def render_batch_text(batch: NotificationBatch) -> str:
    """Plain-text body listing every invoice and binding in the batch."""
    lines = ["Upcoming obligations for your organization.", ""]

    if batch.invoices:
        lines.append("Invoices due soon:")
        for invoice in batch.invoices:
            lines.append(
                f"  - {invoice.vendor}: {invoice.amount} {invoice.currency} "
                f"due {invoice.due_at.isoformat()}"
            )
        lines.append("")

    if batch.bindings:
        lines.append("Contract bindings ending soon:")
        for item in batch.bindings:
            ends_at = item.binding_ends_at.isoformat() if item.binding_ends_at else "-"
            lines.append(f"  - {item.name}: binding ends {ends_at}")
        lines.append("")

    return "\n".join(lines)


class LogNotifier:
    """Logs each batch instead of delivering it."""

    notifier_type = "log"

    def send(self, batch: NotificationBatch) -> None:
        logger.info(
            "reminder_batch",
            recipient=batch.recipient,
            subject=batch.subject,
            organization_id=str(batch.organization_id),
            invoices=[invoice.to_dict() for invoice in batch.invoices],
            bindings=[item.to_dict() for item in batch.bindings],
        )


class SmtpNotifier:
    """Sends each batch as an e-mail through an SMTP relay."""

    notifier_type = "email"

    def __init__(
        self,
        host: str,
        sender: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 30.0,
    ):
        self.host = host
        self.sender = sender
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def build_message(self, batch: NotificationBatch) -> MIMEMultipart:
        msg = MIMEMultipart()
        msg["From"] = self.sender
        msg["To"] = batch.recipient
        msg["Subject"] = batch.subject
        msg.attach(MIMEText(render_batch_text(batch), "plain", "utf-8"))
        return msg

    def send(self, batch: NotificationBatch) -> None:
        msg = self.build_message(batch)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationDeliveryError(
                f"Failed to send reminder e-mail: {e}",
                recipient=batch.recipient,
                original_error=e,
            ) from e


def build_notifier(settings: Settings) -> LogNotifier | SmtpNotifier:
    """Create the notifier selected by ``settings.notifier``."""
    if settings.notifier == "log":
        return LogNotifier()

    if not settings.smtp_host or not settings.smtp_from:
        raise ConfigurationError(
            "SMTP notifier requires a host and a sender address",
            setting="smtp_host",
            expected="host and smtp_from",
        )
    return SmtpNotifier(
        host=settings.smtp_host,
        sender=settings.smtp_from,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        timeout=settings.smtp_timeout_seconds,
    )
