"""
Mail gateway service.

Wraps an SMTP transport behind a single call that never raises:

  MailGateway.send(message: MailMessage) -> MailResult

The gateway fills in the sender and, when the message names no recipient,
the operator address from Settings; builds a stdlib EmailMessage; and hands
it to the transport exactly once. Any transport error becomes
``MailResult(success=False, error=...)``.

Swapping the transport
----------------------
A transport is any object with ``async send(message: EmailMessage) -> None``.
SmtpTransport (aiosmtplib) is the production one; tests pass an AsyncMock.
"""

import logging
import mimetypes
from email.message import EmailMessage
from typing import Optional, Protocol

import aiosmtplib

from app.config import Settings
from app.models.mail import MailAttachment, MailMessage, MailResult

logger = logging.getLogger(__name__)

_DEFAULT_CONTENT_TYPE = "application/octet-stream"


class MailTransport(Protocol):
    async def send(self, message: EmailMessage) -> None: ...


class SmtpTransport:
    """Sends through an authenticated SMTP server with aiosmtplib."""

    def __init__(self, settings: Settings):
        self._settings = settings

    async def send(self, message: EmailMessage) -> None:
        s = self._settings
        await aiosmtplib.send(
            message,
            hostname=s.smtp_host,
            port=s.smtp_port,
            username=s.email_user,
            password=s.email_pass,
            use_tls=not s.smtp_starttls,
            start_tls=s.smtp_starttls,
            timeout=s.smtp_timeout,
        )


# ---------------------------------------------------------------------------
# Message building
# ---------------------------------------------------------------------------

def _split_content_type(attachment: MailAttachment) -> tuple[str, str]:
    """Return (maintype, subtype) for an attachment, guessing when needed."""
    content_type = attachment.content_type
    if not content_type:
        content_type, _ = mimetypes.guess_type(attachment.filename)
    if not content_type or "/" not in content_type:
        content_type = _DEFAULT_CONTENT_TYPE
    maintype, _, subtype = content_type.partition("/")
    return maintype, subtype


def build_email(message: MailMessage, sender: Optional[str], recipients: list[str]) -> EmailMessage:
    """Convert a MailMessage into a ready-to-send EmailMessage."""
    email = EmailMessage()
    if sender:
        email["From"] = sender
    email["To"] = ", ".join(recipients)
    email["Subject"] = message.subject
    email.set_content(message.body)

    for attachment in message.attachments:
        maintype, subtype = _split_content_type(attachment)
        email.add_attachment(
            attachment.content,
            maintype=maintype,
            subtype=subtype,
            filename=attachment.filename,
        )
    return email


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

class MailGateway:
    """One outbound email per call; failures are returned, not raised."""

    def __init__(self, settings: Settings, transport: Optional[MailTransport] = None):
        self._settings = settings
        self._transport = transport or SmtpTransport(settings)

    def resolve_recipients(self, message: MailMessage) -> list[str]:
        """Explicit recipients, or the operator address."""
        recipients = [r for r in (message.to or []) if r]
        if recipients:
            return recipients
        operator = self._settings.operator_email
        return [operator] if operator else []

    async def send(self, message: MailMessage) -> MailResult:
        if not message.subject or not message.body:
            logger.error("Refusing to send email without subject and body")
            return MailResult(success=False, error="subject and body are required")

        recipients = self.resolve_recipients(message)
        if not recipients:
            logger.error(
                f"No recipient for '{message.subject}': set EMAIL_TO or EMAIL_USER"
            )
            return MailResult(success=False, error="no recipient configured")

        try:
            email = build_email(message, self._settings.sender_email, recipients)
            await self._transport.send(email)
        except Exception as e:
            logger.error(f"Error sending email '{message.subject}': {e}", exc_info=True)
            return MailResult(success=False, error=str(e))

        logger.info(f"Email sent: '{message.subject}' to {', '.join(recipients)}")
        return MailResult(success=True)
