"""
API error types and their JSON rendering.

Every failure a handler can surface is an ApiError. The registered exception
handlers render them as ``{"error": message}`` with the matching status, so
callers only ever see the generic message; causes belong in the log.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationFailure(ApiError):
    """Missing or wrong shared secret."""

    status_code = 401

    def __init__(self, message: str = "Invalid API key"):
        super().__init__(message)


class ValidationFailure(ApiError):
    """A required field is missing or malformed."""

    status_code = 400


class PayloadTooLarge(ApiError):
    status_code = 413

    def __init__(self, message: str = "Request body too large"):
        super().__init__(message)


class DeliveryFailure(ApiError):
    """Mail transport or PDF renderer failed."""

    status_code = 500


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def _handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
    return error_response(400, "Invalid request body")


def register_error_handlers(app: FastAPI) -> None:
    """Attach the ApiError / validation handlers to the application."""
    app.add_exception_handler(ApiError, _handle_api_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
