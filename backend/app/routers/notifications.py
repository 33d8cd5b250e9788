"""
Notification router.

Receives form submissions and page activity from the marketing page and
turns each into an email to the operator (and, for form submissions, a PDF
report to the submitter).

Every endpoint takes ``apiKey`` in its body; see app.auth.verify_api_key.
Bodies may be JSON, url-encoded or multipart.

Endpoints:
  POST /form           — consultation request (+ optional file), emails the
                         operator and sends the PDF report to the submitter
  POST /form-viewed    — page view beacon
  POST /button-click   — button click beacon
  POST /form-close     — form closed beacon
  POST /form-open      — form opened beacon
  POST /generate-pdf   — render a RiskReport and return the PDF
  POST /user-login     — login notification
"""

import io
import logging
from datetime import datetime
from typing import Callable, Optional, Type
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from app.auth import verify_api_key
from app.config import Settings
from app.dependencies import (
    RequestBody,
    get_mail_gateway,
    get_pdf_renderer,
    get_settings,
    read_request_body,
)
from app.errors import DeliveryFailure, PayloadTooLarge, ValidationFailure
from app.models.events import (
    ButtonClickEvent,
    ErrorResponse,
    EventKind,
    FormCloseEvent,
    FormOpenEvent,
    LoginUser,
    MessageResponse,
    PageViewEvent,
    PdfRequest,
)
from app.models.mail import MailAttachment, MailMessage, MailResult
from app.services.mail_gateway import MailGateway
from app.services.pdf_renderer import PdfRenderError, PdfRenderer
from app.services.report_composer import (
    REPORT_CONTENT_TYPE,
    REPORT_FILENAME,
    build_consultation_report,
    compose_button_click,
    compose_form_close,
    compose_form_open,
    compose_form_submission,
    compose_login,
    compose_page_view,
    compose_report_delivery,
    normalize_fields,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)

_FILE_FIELD = "file"

_MSG_FORM_SENT = (
    "Form submitted successfully. Client data received and report sent to your email."
)
_MSG_TRACKED = "Tracked successfully"
_MSG_LOGIN_SENT = "Login notification sent successfully"

_ERR_FORM = "Failed to send client data or report"
_ERR_TRACKING = "Failed to send notification"
_ERR_PDF = "Failed to generate PDF"
_ERR_LOGIN = "Failed to send login notification"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _read_attachment(
    upload: Optional[UploadFile], settings: Settings
) -> Optional[MailAttachment]:
    """Read an uploaded file into a MailAttachment (None when nothing was picked)."""
    if upload is None or not upload.filename:
        return None

    # File size check (before reading full content)
    if upload.size is not None and upload.size > settings.max_body_bytes:
        raise PayloadTooLarge("Uploaded file too large")

    content = await upload.read()
    if len(content) > settings.max_body_bytes:
        raise PayloadTooLarge("Uploaded file too large")

    return MailAttachment(
        filename=upload.filename,
        content=content,
        content_type=upload.content_type or None,
    )


async def _send_consultation_report(
    fields: dict[str, str],
    user_email: str,
    gateway: MailGateway,
    renderer: PdfRenderer,
) -> MailResult:
    """Render the placeholder report and email it to the submitter."""
    report = build_consultation_report(fields)
    try:
        pdf_bytes = await renderer.render(report)
    except PdfRenderError as e:
        logger.error(f"Error rendering report for {user_email}: {e}", exc_info=True)
        return MailResult(success=False, error=str(e))

    return await gateway.send(compose_report_delivery(pdf_bytes, user_email))


async def _track(
    kind: EventKind,
    body: RequestBody,
    settings: Settings,
    gateway: MailGateway,
    model: Type[BaseModel],
    compose: Callable[..., MailMessage],
) -> dict:
    """Shared flow of the four page-activity beacons."""
    verify_api_key(body.fields, settings)
    logger.info(f"Tracking event received: {kind.value}")

    try:
        event = model.model_validate(body.fields)
    except ValidationError as e:
        logger.info(f"Rejected {kind.value} payload: {e.errors()}")
        raise ValidationFailure("Invalid tracking data")

    result = await gateway.send(compose(event))
    if not result.success:
        logger.error(f"Failed to send {kind.value} notification: {result.error}")
        raise DeliveryFailure(_ERR_TRACKING)

    return {"message": _MSG_TRACKED}


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/form", response_model=MessageResponse)
async def submit_form(
    body: RequestBody = Depends(read_request_body),
    settings: Settings = Depends(get_settings),
    gateway: MailGateway = Depends(get_mail_gateway),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
) -> dict:
    """
    Consultation request from the risk checker form.

    Sends two emails in order:
      1. every submitted field (and the uploaded file, if any) to the operator
      2. the placeholder risk report PDF to the submitted ``email``

    Both are always attempted; the response is 200 only when both went out.
    Resubmitting sends both again; there is no deduplication.
    """
    logger.info(
        f"{EventKind.FORM_SUBMIT.value} received with fields: {sorted(body.fields)} "
        f"files: {sorted(body.files)}"
    )
    verify_api_key(body.fields, settings)

    fields = normalize_fields(body.fields)
    user_email = fields.get("email", "").strip()
    if not user_email:
        raise ValidationFailure("Email is required")

    attachment = await _read_attachment(body.files.get(_FILE_FIELD), settings)

    admin_message = compose_form_submission(fields, user_email, attachment)
    logger.info(f"Preparing to send email with content length: {len(admin_message.body)}")
    admin_result = await gateway.send(admin_message)

    report_result = await _send_consultation_report(fields, user_email, gateway, renderer)

    if admin_result.success and report_result.success:
        logger.info("Admin email and client PDF sent successfully")
        return {"message": _MSG_FORM_SENT}

    logger.error(
        f"Failed to send admin email or client PDF: "
        f"{admin_result.error or report_result.error}"
    )
    raise DeliveryFailure(_ERR_FORM)


@router.post("/form-viewed", response_model=MessageResponse)
async def form_viewed(
    body: RequestBody = Depends(read_request_body),
    settings: Settings = Depends(get_settings),
    gateway: MailGateway = Depends(get_mail_gateway),
) -> dict:
    return await _track(
        EventKind.FORM_VIEWED, body, settings, gateway, PageViewEvent, compose_page_view
    )


@router.post("/button-click", response_model=MessageResponse)
async def button_click(
    body: RequestBody = Depends(read_request_body),
    settings: Settings = Depends(get_settings),
    gateway: MailGateway = Depends(get_mail_gateway),
) -> dict:
    return await _track(
        EventKind.BUTTON_CLICK, body, settings, gateway, ButtonClickEvent, compose_button_click
    )


@router.post("/form-close", response_model=MessageResponse)
async def form_close(
    body: RequestBody = Depends(read_request_body),
    settings: Settings = Depends(get_settings),
    gateway: MailGateway = Depends(get_mail_gateway),
) -> dict:
    return await _track(
        EventKind.FORM_CLOSE, body, settings, gateway, FormCloseEvent, compose_form_close
    )


@router.post("/form-open", response_model=MessageResponse)
async def form_open(
    body: RequestBody = Depends(read_request_body),
    settings: Settings = Depends(get_settings),
    gateway: MailGateway = Depends(get_mail_gateway),
) -> dict:
    return await _track(
        EventKind.FORM_OPEN, body, settings, gateway, FormOpenEvent, compose_form_open
    )


@router.post("/generate-pdf")
async def generate_pdf(
    body: RequestBody = Depends(read_request_body),
    settings: Settings = Depends(get_settings),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
) -> StreamingResponse:
    """
    Render the posted ``reportData`` and return it as a PDF download.

    Nothing is emailed.

    Raises:
        400 if reportData is missing or not a valid RiskReport.
        500 if the browser fails to print.
    """
    verify_api_key(body.fields, settings)
    logger.info(f"{EventKind.PDF_REQUEST.value} received")

    try:
        request = PdfRequest.model_validate(body.fields)
    except ValidationError as e:
        logger.info(f"Rejected reportData: {e.errors()}")
        raise ValidationFailure("Valid reportData is required")

    try:
        pdf_bytes = await renderer.render(request.report_data)
    except PdfRenderError as e:
        logger.error(f"Failed to generate PDF: {e}", exc_info=True)
        raise DeliveryFailure(_ERR_PDF)

    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type=REPORT_CONTENT_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{REPORT_FILENAME}"',
        },
    )


@router.post("/user-login", response_model=MessageResponse)
async def user_login(
    body: RequestBody = Depends(read_request_body),
    settings: Settings = Depends(get_settings),
    gateway: MailGateway = Depends(get_mail_gateway),
) -> dict:
    """Notify the operator that a user signed in to the risk checker."""
    verify_api_key(body.fields, settings)
    logger.info(f"{EventKind.LOGIN.value} received")

    user_data = body.fields.get("userData")
    if not isinstance(user_data, dict) or not user_data.get("email"):
        raise ValidationFailure("User data with email is required")

    try:
        user = LoginUser.model_validate(user_data)
    except ValidationError as e:
        logger.info(f"Rejected userData: {e.errors()}")
        raise ValidationFailure("User data with email is required")

    login_time = datetime.now(ZoneInfo(settings.report_timezone))
    result = await gateway.send(compose_login(user, login_time))
    if not result.success:
        logger.error(f"Error sending login notification: {result.error}")
        raise DeliveryFailure(_ERR_LOGIN)

    return {"message": _MSG_LOGIN_SENT}
