"""
Unit tests for the shared-secret check.
"""

import pytest

from app.auth import verify_api_key
from app.config import Settings
from app.errors import AuthenticationFailure


class TestVerifyApiKey:

    def test_matching_key_passes(self):
        assert verify_api_key({"apiKey": "s3cret"}, Settings(api_key="s3cret")) is None

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"apiKey": ""},
            {"apiKey": "wrong"},
            {"apiKey": "S3CRET"},
            {"apiKey": "s3cret "},
            {"apiKey": None},
            {"apiKey": 12345},
        ],
    )
    def test_mismatch_raises_401(self, body):
        with pytest.raises(AuthenticationFailure) as exc_info:
            verify_api_key(body, Settings(api_key="s3cret"))

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Invalid API key"

    def test_unconfigured_secret_rejects_missing_key(self):
        with pytest.raises(AuthenticationFailure):
            verify_api_key({}, Settings(api_key=None))

    def test_unconfigured_secret_rejects_any_key(self):
        with pytest.raises(AuthenticationFailure):
            verify_api_key({"apiKey": "anything"}, Settings())
