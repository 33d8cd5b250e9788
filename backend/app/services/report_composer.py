"""
Report composer service.

Turns request fields into the MailMessages the handlers send and builds the
placeholder RiskReport attached to form submissions. Everything here is pure
formatting: no I/O, no validation beyond what the handlers already did.

Public API:
  normalize_fields(body)                     -> dict[str, str]
  format_fields(fields)                      -> str
  compose_form_submission(fields, email, attachment) -> MailMessage
  build_consultation_report(fields)          -> RiskReport
  compose_report_delivery(pdf_bytes, email)  -> MailMessage
  compose_page_view / compose_button_click / compose_form_close /
  compose_form_open(event)                   -> MailMessage
  compose_login(user, login_time)            -> MailMessage
"""

import json
from datetime import datetime
from typing import Any, Iterable, Optional

from app.models.events import (
    ButtonClickEvent,
    FormCloseEvent,
    FormOpenEvent,
    LoginUser,
    PageViewEvent,
)
from app.models.mail import MailAttachment, MailMessage
from app.models.report import RiskLevel, RiskReport

REPORT_FILENAME = "GMB-Risk-Report.pdf"
REPORT_CONTENT_TYPE = "application/pdf"

MISSING_VALUE = "N/A"

# Fields that never appear in a notification body
_EXCLUDED_FIELDS = ("apiKey",)

# ---------------------------------------------------------------------------
# Subjects
# ---------------------------------------------------------------------------

SUBJECT_FORM_SUBMISSION = "📨 New GBP Form Submission - Client Data"
SUBJECT_REPORT_DELIVERY = "Your GMB Risk Assessment Report"
SUBJECT_PAGE_VIEW = "👁️ GBP Form Page Viewed - User Activity"
SUBJECT_BUTTON_CLICK = "🚨 GBP Button Clicked - User Activity"
SUBJECT_FORM_CLOSE = "❌ GBP Form Closed - User Activity"
SUBJECT_FORM_OPEN = "📂 GBP Form Opened - User Activity"
SUBJECT_LOGIN = "🔐 New User Login - GMB Risk Checker"

# ---------------------------------------------------------------------------
# Fixed bodies
# ---------------------------------------------------------------------------

_FORM_SUBMISSION_HEADER = (
    "Request Expert Consultation\n"
    "Our GMB specialists will review your assessment and provide "
    "personalized recommendations."
)

_REPORT_DELIVERY_BODY = (
    "Dear User,\n"
    "\n"
    "Please find attached your GMB Suspension Risk Report.\n"
    "\n"
    "We will contact you soon to schedule your consultation.\n"
    "\n"
    "For immediate help, contact our support team at support@gmbriskchecker.com\n"
    "\n"
    "Best regards,\n"
    "GMB Risk Checker Team"
)

_LOGIN_FOOTER = "Best regards,\nGMB Risk Checker System"
_LOGIN_PROVIDER = "Google"

# Placeholder report sent to every consultation request
_CONSULTATION_LEVEL = RiskLevel(label="Medium", color="#ffc107")
_CONSULTATION_SCORE = 67
_CONSULTATION_FACTORS = (
    "Based on your consultation request",
    "Detailed analysis will be provided during call",
)
_CONSULTATION_RECOMMENDATIONS = (
    "We will contact you soon to schedule your consultation",
    "Personalized action plan will be sent after the call",
)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def normalize_fields(body: dict) -> dict[str, str]:
    """
    Return the body as an ordered str -> str mapping without the API key.

    Insertion order is kept so the notification lists fields the way the
    page sent them.
    """
    return {
        str(key): _stringify(value)
        for key, value in body.items()
        if key not in _EXCLUDED_FIELDS
    }


def format_fields(fields: dict[str, str]) -> str:
    """Join fields as ``key: value`` lines in insertion order."""
    return "\n".join(f"{key}: {value}" for key, value in fields.items())


def _value(value: Optional[str]) -> str:
    return value if value else MISSING_VALUE


def _activity_body(heading: str, lines: Iterable[tuple[str, Optional[str]]]) -> str:
    detail = "\n".join(f"{label}: {_value(value)}" for label, value in lines)
    return f"{heading}\n\n{detail}"


# ---------------------------------------------------------------------------
# Form submission
# ---------------------------------------------------------------------------

def compose_form_submission(
    fields: dict[str, str],
    user_email: str,
    attachment: Optional[MailAttachment] = None,
) -> MailMessage:
    """Admin notification carrying every submitted field (to the operator)."""
    body = (
        f"{_FORM_SUBMISSION_HEADER}\n"
        f"\n"
        f"User Email: {user_email}\n"
        f"\n"
        f"Form Data:\n"
        f"{format_fields(fields)}"
    )
    return MailMessage(
        subject=SUBJECT_FORM_SUBMISSION,
        body=body,
        attachments=[attachment] if attachment else [],
    )


def build_consultation_report(fields: dict[str, str]) -> RiskReport:
    """
    Placeholder report for a consultation request.

    The score and band are fixed; only the business name comes from the
    submission. The real analysis happens during the consultation call.
    """
    return RiskReport(
        risk_score=_CONSULTATION_SCORE,
        risk_level=_CONSULTATION_LEVEL,
        business_type=fields.get("businessName") or None,
        risk_factors=list(_CONSULTATION_FACTORS),
        recommendations=list(_CONSULTATION_RECOMMENDATIONS),
    )


def compose_report_delivery(pdf_bytes: bytes, user_email: str) -> MailMessage:
    """Message that delivers the rendered PDF to the submitter."""
    return MailMessage(
        subject=SUBJECT_REPORT_DELIVERY,
        body=_REPORT_DELIVERY_BODY,
        to=[user_email],
        attachments=[
            MailAttachment(
                filename=REPORT_FILENAME,
                content=pdf_bytes,
                content_type=REPORT_CONTENT_TYPE,
            )
        ],
    )


# ---------------------------------------------------------------------------
# Page activity
# ---------------------------------------------------------------------------

def compose_page_view(event: PageViewEvent) -> MailMessage:
    return MailMessage(
        subject=SUBJECT_PAGE_VIEW,
        body=_activity_body(
            "👁️ Form Viewed",
            [
                ("Time", event.time),
                ("Page", event.page),
                ("User Agent", event.user_agent),
                ("Referrer", event.referrer),
            ],
        ),
    )


def compose_button_click(event: ButtonClickEvent) -> MailMessage:
    return MailMessage(
        subject=SUBJECT_BUTTON_CLICK,
        body=_activity_body(
            "🚨 Button Clicked",
            [
                ("Time", event.timestamp),
                ("Action", event.action),
                ("User Agent", event.user_agent),
                ("Referrer", event.referrer),
            ],
        ),
    )


def compose_form_close(event: FormCloseEvent) -> MailMessage:
    return MailMessage(
        subject=SUBJECT_FORM_CLOSE,
        body=_activity_body(
            "❌ Form Closed",
            [
                ("Time", event.timestamp),
                ("Action", event.action),
                ("User Agent", event.user_agent),
                ("Referrer", event.referrer),
            ],
        ),
    )


def compose_form_open(event: FormOpenEvent) -> MailMessage:
    return MailMessage(
        subject=SUBJECT_FORM_OPEN,
        body=_activity_body(
            "📂 Form Opened",
            [
                ("Time", event.timestamp),
                ("User Agent", event.user_agent),
                ("Referrer", event.referrer),
            ],
        ),
    )


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

def format_login_time(moment: datetime) -> str:
    """
    Format like a browser's en-IN locale string (day and month unpadded).

    e.g. ``19/10/2026, 3:05:09 pm``
    """
    hour = moment.hour % 12 or 12
    meridiem = "am" if moment.hour < 12 else "pm"
    return f"{moment.day}/{moment.month}/{moment.year}, {hour}:{moment:%M:%S} {meridiem}"


def compose_login(user: LoginUser, login_time: datetime) -> MailMessage:
    body = (
        "🔐 User Login Notification\n"
        "\n"
        "A user has logged into the GMB Risk Checker application.\n"
        "\n"
        "User Details:\n"
        f"- Name: {_value(user.display_name)}\n"
        f"- Email: {user.email}\n"
        f"- User ID: {_value(user.uid)}\n"
        f"- Login Time: {format_login_time(login_time)}\n"
        f"- Provider: {_LOGIN_PROVIDER}\n"
        "\n"
        f"{_LOGIN_FOOTER}"
    )
    return MailMessage(subject=SUBJECT_LOGIN, body=body)
