"""
Shared-secret verification.

Every endpoint carries ``apiKey`` in its body and it must equal the
configured API_KEY exactly. The check runs before any field validation or
side effect, so a rejected request never reaches the mail gateway.
"""

import logging
from typing import Any

from app.config import Settings
from app.errors import AuthenticationFailure

logger = logging.getLogger(__name__)

API_KEY_FIELD = "apiKey"


def verify_api_key(body: dict[str, Any], settings: Settings) -> None:
    """
    Raise AuthenticationFailure unless the body's apiKey matches Settings.

    When no API_KEY is configured every request is rejected; an unset
    secret must not match a missing key.
    """
    expected = settings.api_key
    if not expected:
        logger.warning(
            "No API_KEY configured; all notification requests will be rejected"
        )
        raise AuthenticationFailure()

    provided = body.get(API_KEY_FIELD)
    if not isinstance(provided, str) or provided != expected:
        logger.info("Invalid API key")
        raise AuthenticationFailure()
