"""
Outbound mail models.

A MailMessage is built by the report composer, handed to the mail gateway
once, and discarded. The gateway answers with a MailResult instead of
raising, so handlers decide the HTTP status from ``success`` alone.
"""

from typing import Optional
from pydantic import BaseModel


class MailAttachment(BaseModel):
    """A single file attachment, held as raw bytes."""

    filename: str
    content: bytes
    content_type: Optional[str] = None   # guessed from filename when missing


class MailMessage(BaseModel):
    """
    One outbound email.

    ``to`` is optional: when empty the gateway delivers to the operator
    address from Settings.
    """

    subject: str
    body: str
    to: Optional[list[str]] = None
    attachments: list[MailAttachment] = []


class MailResult(BaseModel):
    """Outcome of a single send attempt."""

    success: bool
    error: Optional[str] = None
