"""
Unit tests for the mail gateway.
Tests recipient resolution, message building, and failure conversion.
"""

import pytest
from unittest.mock import AsyncMock, Mock, patch

import aiosmtplib

from app.config import Settings
from app.models.mail import MailAttachment, MailMessage
from app.services.mail_gateway import MailGateway, SmtpTransport, build_email


def _make_settings(**overrides) -> Settings:
    values = {
        "email_user": "sender@example.com",
        "email_pass": "app-password",
        "email_to": "ops@example.com",
    }
    values.update(overrides)
    return Settings(**values)


def _make_transport():
    transport = Mock()
    transport.send = AsyncMock(return_value=None)
    return transport


class TestMailGatewaySend:
    """MailGateway.send() delivers once and never raises."""

    @pytest.mark.asyncio
    async def test_defaults_to_operator_address(self):
        transport = _make_transport()
        gateway = MailGateway(_make_settings(), transport=transport)

        result = await gateway.send(MailMessage(subject="Hello", body="Body"))

        assert result.success is True
        assert result.error is None
        email = transport.send.await_args.args[0]
        assert email["To"] == "ops@example.com"
        assert email["From"] == "sender@example.com"
        assert email["Subject"] == "Hello"
        assert email.get_content().strip() == "Body"

    @pytest.mark.asyncio
    async def test_operator_falls_back_to_email_user(self):
        transport = _make_transport()
        gateway = MailGateway(_make_settings(email_to=None), transport=transport)

        await gateway.send(MailMessage(subject="Hello", body="Body"))

        assert transport.send.await_args.args[0]["To"] == "sender@example.com"

    @pytest.mark.asyncio
    async def test_explicit_recipients_override_operator(self):
        transport = _make_transport()
        gateway = MailGateway(_make_settings(), transport=transport)

        await gateway.send(
            MailMessage(subject="Hi", body="Body", to=["a@b.com", "c@d.com"])
        )

        assert transport.send.await_args.args[0]["To"] == "a@b.com, c@d.com"

    @pytest.mark.asyncio
    async def test_email_from_overrides_sender(self):
        transport = _make_transport()
        gateway = MailGateway(
            _make_settings(email_from="noreply@example.com"), transport=transport
        )

        await gateway.send(MailMessage(subject="Hi", body="Body"))

        assert transport.send.await_args.args[0]["From"] == "noreply@example.com"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("subject,body", [("", "Body"), ("Subject", "")])
    async def test_missing_subject_or_body_fails_without_sending(self, subject, body):
        transport = _make_transport()
        gateway = MailGateway(_make_settings(), transport=transport)

        result = await gateway.send(MailMessage(subject=subject, body=body))

        assert result.success is False
        assert "required" in result.error
        transport.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_recipient_configured_fails(self):
        transport = _make_transport()
        gateway = MailGateway(
            _make_settings(email_to=None, email_user=None), transport=transport
        )

        result = await gateway.send(MailMessage(subject="Hi", body="Body"))

        assert result.success is False
        transport.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transport_error_is_returned_not_raised(self):
        transport = _make_transport()
        transport.send.side_effect = aiosmtplib.SMTPAuthenticationError(535, "Bad credentials")
        gateway = MailGateway(_make_settings(), transport=transport)

        result = await gateway.send(MailMessage(subject="Hi", body="Body"))

        assert result.success is False
        assert "Bad credentials" in result.error
        transport.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_one_attempt_per_call(self):
        transport = _make_transport()
        transport.send.side_effect = ConnectionError("refused")
        gateway = MailGateway(_make_settings(), transport=transport)

        await gateway.send(MailMessage(subject="Hi", body="Body"))

        assert transport.send.await_count == 1


class TestBuildEmail:
    """build_email() attachment handling."""

    def test_declared_content_type_is_used(self):
        message = MailMessage(
            subject="Report",
            body="See attached",
            attachments=[
                MailAttachment(
                    filename="GMB-Risk-Report.pdf",
                    content=b"%PDF-1.4",
                    content_type="application/pdf",
                )
            ],
        )

        email = build_email(message, "sender@example.com", ["a@b.com"])

        (part,) = list(email.iter_attachments())
        assert part.get_filename() == "GMB-Risk-Report.pdf"
        assert part.get_content_type() == "application/pdf"
        assert part.get_content() == b"%PDF-1.4"

    def test_content_type_guessed_from_filename(self):
        message = MailMessage(
            subject="Upload",
            body="File",
            attachments=[MailAttachment(filename="brief.pdf", content=b"%PDF")],
        )

        email = build_email(message, None, ["a@b.com"])

        (part,) = list(email.iter_attachments())
        assert part.get_content_type() == "application/pdf"

    def test_unknown_extension_is_octet_stream(self):
        message = MailMessage(
            subject="Upload",
            body="File",
            attachments=[MailAttachment(filename="blob.unknownext", content=b"\x00\x01")],
        )

        email = build_email(message, None, ["a@b.com"])

        (part,) = list(email.iter_attachments())
        assert part.get_content_type() == "application/octet-stream"
        assert part.get_content() == b"\x00\x01"

    def test_no_sender_leaves_from_unset(self):
        email = build_email(MailMessage(subject="S", body="B"), None, ["a@b.com"])
        assert email["From"] is None


class TestSmtpTransport:
    """SmtpTransport passes Settings through to aiosmtplib."""

    @pytest.mark.asyncio
    async def test_implicit_tls_by_default(self):
        settings = _make_settings()
        transport = SmtpTransport(settings)
        email = build_email(MailMessage(subject="S", body="B"), "sender@example.com", ["a@b.com"])

        with patch("app.services.mail_gateway.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            await transport.send(email)

        mock_send.assert_awaited_once_with(
            email,
            hostname="smtp.gmail.com",
            port=465,
            username="sender@example.com",
            password="app-password",
            use_tls=True,
            start_tls=False,
            timeout=30.0,
        )

    @pytest.mark.asyncio
    async def test_starttls_settings(self):
        settings = _make_settings(smtp_host="mail.example.com", smtp_port=587, smtp_starttls=True)
        transport = SmtpTransport(settings)
        email = build_email(MailMessage(subject="S", body="B"), "sender@example.com", ["a@b.com"])

        with patch("app.services.mail_gateway.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            await transport.send(email)

        kwargs = mock_send.await_args.kwargs
        assert kwargs["hostname"] == "mail.example.com"
        assert kwargs["port"] == 587
        assert kwargs["use_tls"] is False
        assert kwargs["start_tls"] is True

    @pytest.mark.asyncio
    async def test_gateway_builds_smtp_transport_by_default(self):
        gateway = MailGateway(_make_settings())

        with patch("app.services.mail_gateway.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            result = await gateway.send(MailMessage(subject="S", body="B"))

        assert result.success is True
        mock_send.assert_awaited_once()
