"""
Runtime configuration.

Settings are read from the process environment once at startup (a ``.env``
file is loaded first when present) and frozen. The app factory stores the
instance on ``app.state`` and handlers receive it through a dependency, so
nothing below the HTTP layer reads ``os.environ`` directly.

Environment variables
---------------------
API_KEY            Shared secret every endpoint compares against.
EMAIL_USER         SMTP username; also the default sender.
EMAIL_PASS         SMTP password (for Gmail, an app password).
EMAIL_FROM         Overrides the sender address.
EMAIL_TO           Operator address for internal notifications.
                   Falls back to EMAIL_USER when not set.
SMTP_HOST          Default: smtp.gmail.com
SMTP_PORT          Default: 465 (implicit TLS)
SMTP_STARTTLS      "true" to upgrade a plain connection (port 587).
SMTP_TIMEOUT       Seconds, default 30.
REPORT_TIMEZONE    IANA zone used for login timestamps (default Asia/Kolkata).
MAX_BODY_BYTES     Request body limit, default 10 MB.
PORT               Listen port, default 5000.
"""

import os
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024  # 10 MB

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Immutable process configuration."""

    model_config = {"frozen": True}

    api_key: Optional[str] = None
    email_user: Optional[str] = None
    email_pass: Optional[str] = None
    email_from: Optional[str] = None
    email_to: Optional[str] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_starttls: bool = False
    smtp_timeout: float = 30.0
    report_timezone: str = "Asia/Kolkata"
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    port: int = 5000

    @field_validator("report_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone {value!r}")
        return value

    @property
    def operator_email(self) -> Optional[str]:
        """Address that receives internal notifications."""
        return self.email_to or self.email_user

    @property
    def sender_email(self) -> Optional[str]:
        return self.email_from or self.email_user


def _env(name: str) -> Optional[str]:
    """Return a stripped env var, treating blank values as unset."""
    value = os.getenv(name, "").strip()
    return value or None


def load_settings() -> Settings:
    """
    Build Settings from the environment.

    Unset variables keep the model defaults. Missing credentials are not an
    error here: the mail gateway reports delivery failures at send time and
    the auth check rejects every request while API_KEY is unset.
    """
    load_dotenv()

    values: dict = {
        "api_key": _env("API_KEY"),
        "email_user": _env("EMAIL_USER"),
        "email_pass": _env("EMAIL_PASS"),
        "email_from": _env("EMAIL_FROM"),
        "email_to": _env("EMAIL_TO"),
    }

    optional = {
        "smtp_host": _env("SMTP_HOST"),
        "smtp_port": _env("SMTP_PORT"),
        "smtp_timeout": _env("SMTP_TIMEOUT"),
        "report_timezone": _env("REPORT_TIMEZONE"),
        "max_body_bytes": _env("MAX_BODY_BYTES"),
        "port": _env("PORT"),
    }
    values.update({k: v for k, v in optional.items() if v is not None})

    starttls = _env("SMTP_STARTTLS")
    if starttls is not None:
        values["smtp_starttls"] = starttls.lower() in _TRUE_VALUES

    return Settings(**values)
