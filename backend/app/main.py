"""
GMB Risk Checker notification API
FastAPI application that turns marketing-page events into operator emails
and renders risk report PDFs.
"""

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings, load_settings
from app.errors import error_response, register_error_handlers
from app.routers import notifications
from app.services.mail_gateway import MailGateway
from app.services.pdf_renderer import PdfRenderer

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


def create_app(
    settings: Optional[Settings] = None,
    mail_gateway: Optional[MailGateway] = None,
    pdf_renderer: Optional[PdfRenderer] = None,
) -> FastAPI:
    """
    Build the application.

    Settings are loaded from the environment when not given. The gateway and
    renderer are built from the settings unless supplied (tests pass fakes).
    All three live on ``app.state`` for the lifetime of the process.
    """
    settings = settings or load_settings()

    app = FastAPI(
        title="GMB Risk Checker Notifications",
        description="Form, activity and login notifications with PDF risk reports",
        version=API_VERSION,
    )
    app.state.settings = settings
    app.state.mail_gateway = mail_gateway or MailGateway(settings)
    app.state.pdf_renderer = pdf_renderer or PdfRenderer()

    register_error_handlers(app)

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        """Reject bodies whose declared length exceeds the configured limit."""
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            if int(content_length) > settings.max_body_bytes:
                logger.warning(
                    f"Rejected {request.url.path}: body of {content_length} bytes "
                    f"exceeds {settings.max_body_bytes}"
                )
                return error_response(413, "Request body too large")
        return await call_next(request)

    # CORS is open: the marketing page may be served from any host
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(notifications.router, prefix="/api", tags=["notifications"])

    @app.on_event("startup")
    async def log_startup() -> None:
        logger.info(f"✅ Server running on port {settings.port}")
        if not settings.api_key:
            logger.warning("API_KEY is not set; every request will be rejected")
        if not settings.operator_email:
            logger.warning("EMAIL_TO / EMAIL_USER not set; notifications cannot be delivered")

    @app.get("/")
    async def root():
        return {"message": "GMB Risk Checker API", "version": API_VERSION}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app on Settings.port."""
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
