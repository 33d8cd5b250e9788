"""
Request body decoding tests.
Drives the read_request_body dependency directly against a raw ASGI request.
"""

import json
from types import SimpleNamespace

import pytest
from starlette.requests import Request

from app.config import Settings
from app.dependencies import read_request_body
from app.errors import PayloadTooLarge, ValidationFailure

BOUNDARY = "test-boundary"


def _request(body: bytes, content_type: str, settings: Settings = None) -> Request:
    """Build a Request whose app.state carries ``settings``."""
    app = SimpleNamespace(state=SimpleNamespace(settings=settings or Settings(api_key="k")))
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/form",
        "headers": [
            (b"content-type", content_type.encode()),
            (b"content-length", str(len(body)).encode()),
        ],
        "query_string": b"",
        "app": app,
    }
    sent = False

    async def receive():
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


def _multipart(fields: dict, filename: str, content: bytes) -> bytes:
    parts = []
    for name, value in fields.items():
        parts.append(
            f"--{BOUNDARY}\r\n"
            f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
            f"{value}\r\n".encode()
        )
    parts.append(
        f"--{BOUNDARY}\r\n"
        f'Content-Disposition: form-data; name="file"; filename="{filename}"\r\n'
        f"Content-Type: text/plain\r\n\r\n".encode()
        + content
        + b"\r\n"
    )
    parts.append(f"--{BOUNDARY}--\r\n".encode())
    return b"".join(parts)


class TestReadRequestBody:

    @pytest.mark.asyncio
    async def test_multipart_upload_is_closed_when_handler_finishes(self):
        raw = _multipart({"apiKey": "k", "email": "a@b.com"}, "brief.txt", b"hello")
        request = _request(raw, f"multipart/form-data; boundary={BOUNDARY}")

        decoding = read_request_body(request)
        body = await decoding.__anext__()
        upload = body.files["file"]

        assert body.fields == {"apiKey": "k", "email": "a@b.com"}
        assert upload.filename == "brief.txt"
        assert not upload.file.closed
        assert await upload.read() == b"hello"

        with pytest.raises(StopAsyncIteration):
            await decoding.__anext__()
        assert upload.file.closed

    @pytest.mark.asyncio
    async def test_multipart_upload_is_closed_when_handler_raises(self):
        raw = _multipart({"apiKey": "k"}, "brief.txt", b"hello")
        request = _request(raw, f"multipart/form-data; boundary={BOUNDARY}")

        decoding = read_request_body(request)
        body = await decoding.__anext__()
        upload = body.files["file"]

        with pytest.raises(ValidationFailure):
            await decoding.athrow(ValidationFailure("Email is required"))
        assert upload.file.closed

    @pytest.mark.asyncio
    async def test_urlencoded_fields(self):
        request = _request(b"apiKey=k&name=Asha", "application/x-www-form-urlencoded")

        body = await read_request_body(request).__anext__()

        assert body.fields == {"apiKey": "k", "name": "Asha"}
        assert body.files == {}

    @pytest.mark.asyncio
    async def test_text_plain_is_parsed_as_json(self):
        raw = json.dumps({"apiKey": "k", "page": "/"}).encode()
        request = _request(raw, "text/plain;charset=UTF-8")

        body = await read_request_body(request).__anext__()

        assert body.fields == {"apiKey": "k", "page": "/"}

    @pytest.mark.asyncio
    async def test_non_object_json_yields_no_fields(self):
        request = _request(b"[1, 2]", "application/json")

        body = await read_request_body(request).__anext__()

        assert body.fields == {}

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self):
        request = _request(b"{not json", "application/json")

        with pytest.raises(ValidationFailure):
            await read_request_body(request).__anext__()

    @pytest.mark.asyncio
    async def test_body_over_limit_raises(self):
        settings = Settings(api_key="k", max_body_bytes=8)
        request = _request(b'{"apiKey": "k"}', "application/json", settings)

        with pytest.raises(PayloadTooLarge):
            await read_request_body(request).__anext__()
