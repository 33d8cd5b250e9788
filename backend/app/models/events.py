"""
Pydantic models for the events the marketing page reports.

Models:
  EventKind         — every notification kind the API handles
  PageViewEvent     — POST /form-viewed
  ButtonClickEvent  — POST /button-click
  FormCloseEvent    — POST /form-close
  FormOpenEvent     — POST /form-open
  LoginUser         — userData of POST /user-login
  PdfRequest        — POST /generate-pdf
  MessageResponse / ErrorResponse — response bodies

Tracking fields are all optional: a beacon with a missing field is still
forwarded (rendered as "N/A"), only the API key decides whether it is
accepted. The apiKey itself is checked before these models are built and
is ignored by them.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from app.models.report import RiskReport


class EventKind(str, Enum):
    FORM_SUBMIT = "form-submit"
    FORM_VIEWED = "form-viewed"
    BUTTON_CLICK = "button-click"
    FORM_CLOSE = "form-close"
    FORM_OPEN = "form-open"
    LOGIN = "login"
    PDF_REQUEST = "pdf-request"


# Beacons send timestamps as numbers as often as strings
_TRACKING_CONFIG = {
    "extra": "ignore",
    "populate_by_name": True,
    "coerce_numbers_to_str": True,
}


class PageViewEvent(BaseModel):
    model_config = _TRACKING_CONFIG

    time: Optional[str] = None
    page: Optional[str] = None
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    referrer: Optional[str] = None


class ButtonClickEvent(BaseModel):
    model_config = _TRACKING_CONFIG

    timestamp: Optional[str] = None
    action: Optional[str] = None
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    referrer: Optional[str] = None


class FormCloseEvent(ButtonClickEvent):
    """Same shape as a button click; ``action`` names how the form closed."""


class FormOpenEvent(BaseModel):
    model_config = _TRACKING_CONFIG

    timestamp: Optional[str] = None
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    referrer: Optional[str] = None


class LoginUser(BaseModel):
    """The signed-in user as reported by the page's auth provider."""

    model_config = _TRACKING_CONFIG

    email: str = Field(min_length=1)
    display_name: Optional[str] = Field(default=None, alias="displayName")
    uid: Optional[str] = None


class PdfRequest(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}

    report_data: RiskReport = Field(alias="reportData")


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
