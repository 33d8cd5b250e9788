"""
FastAPI dependencies shared by the routers.

The app factory puts Settings, the MailGateway and the PdfRenderer on
``app.state``; these accessors hand them to handlers so nothing reads
global state. ``read_request_body`` turns JSON, url-encoded and multipart
bodies into one ordered dict so the API key can be checked before any
endpoint-specific parsing.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from fastapi import Request
from starlette.datastructures import UploadFile

from app.config import Settings
from app.errors import PayloadTooLarge, ValidationFailure
from app.services.mail_gateway import MailGateway
from app.services.pdf_renderer import PdfRenderer

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mail_gateway(request: Request) -> MailGateway:
    return request.app.state.mail_gateway


def get_pdf_renderer(request: Request) -> PdfRenderer:
    return request.app.state.pdf_renderer


@dataclass
class RequestBody:
    """Decoded request body: ordered fields plus any uploaded files."""

    fields: dict[str, Any] = field(default_factory=dict)
    files: dict[str, UploadFile] = field(default_factory=dict)


async def read_request_body(request: Request) -> AsyncIterator[RequestBody]:
    """
    Decode the body regardless of how the page sent it.

    - multipart / url-encoded forms: text parts become fields, file parts
      go to ``files``; the form (and its spooled uploads) is closed once the
      handler is done with it
    - anything else is parsed as JSON (beacons often arrive as text/plain);
      an empty body or a non-object JSON value yields no fields

    Raises:
        PayloadTooLarge: body exceeds Settings.max_body_bytes
        ValidationFailure: body is not valid JSON
    """
    settings = get_settings(request)
    raw = await request.body()
    if len(raw) > settings.max_body_bytes:
        raise PayloadTooLarge()

    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(_FORM_CONTENT_TYPES):
        form = await request.form()
        try:
            body = RequestBody()
            for key, value in form.multi_items():
                if isinstance(value, UploadFile):
                    body.files[key] = value
                else:
                    body.fields[key] = value
            yield body
        finally:
            await form.close()
        return

    yield _parse_json(raw, request.url.path)


def _parse_json(raw: bytes, path: str) -> RequestBody:
    if not raw.strip():
        return RequestBody()

    try:
        parsed = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        logger.info(f"Unreadable request body on {path}: {e}")
        raise ValidationFailure("Invalid request body")

    if not isinstance(parsed, dict):
        return RequestBody()
    return RequestBody(fields=parsed)
