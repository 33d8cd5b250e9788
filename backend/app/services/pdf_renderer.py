"""
Risk report PDF rendering service.

Builds the report HTML from templates/risk_report.html and prints it to PDF
with a headless Chromium driven by Playwright.

Public API:
  render_report_html(report: RiskReport) -> str
  PdfRenderer.render(report: RiskReport) -> bytes

A browser is launched for every render and closed afterwards, even when
printing fails. Failures surface as PdfRenderError.
"""

import logging
import re
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from playwright.async_api import async_playwright

from app.models.report import RiskReport

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
REPORT_TEMPLATE = "risk_report.html"

PAGE_FORMAT = "A4"
PAGE_MARGIN = {"top": "20px", "bottom": "20px", "left": "20px", "right": "20px"}

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


class PdfRenderError(Exception):
    """Raised when the browser fails to produce a PDF."""


def _band_class(label: str) -> str:
    """'Very High' -> 'very-high'"""
    return re.sub(r"\s+", "-", label.strip().lower())


def render_report_html(report: RiskReport) -> str:
    """Render the report into a standalone HTML document."""
    template = _env.get_template(REPORT_TEMPLATE)
    return template.render(
        report=report,
        color=report.risk_level.color,
        band_class=_band_class(report.risk_level.label),
    )


class PdfRenderer:
    """Prints RiskReports to PDF through a fresh headless browser per call."""

    async def render(self, report: RiskReport) -> bytes:
        html = render_report_html(report)
        try:
            async with async_playwright() as pw:
                browser = await pw.chromium.launch(headless=True)
                try:
                    page = await browser.new_page()
                    await page.set_content(html, wait_until="networkidle")
                    pdf_bytes = await page.pdf(
                        format=PAGE_FORMAT,
                        print_background=True,
                        margin=PAGE_MARGIN,
                    )
                finally:
                    await browser.close()
        except Exception as e:
            raise PdfRenderError(f"Failed to render risk report PDF: {e}") from e

        logger.info(f"Rendered risk report PDF ({len(pdf_bytes):,} bytes)")
        return pdf_bytes
