from __future__ import annotations

import logging
from typing import Optional

from .converter import markdown_to_html
from .print_engine import (
    ChromiumPrintEngine,
    PdfExportError,
    PrintEngine,
    WeasyPrintEngine,
    page_format_for,
)
from .rules import FormattingRule
from .settings import settings


logger = logging.getLogger(__name__)


def get_print_engine(name: Optional[str] = None) -> PrintEngine:
    engine = (name or settings.print_engine or "chromium").strip().lower()
    if engine == "chromium":
        return ChromiumPrintEngine(
            ws_endpoint=settings.browser_ws_endpoint,
            executable_path=settings.chrome_path,
            set_content_timeout_ms=settings.set_content_timeout_ms,
        )
    if engine == "weasyprint":
        return WeasyPrintEngine()
    raise PdfExportError(f"Unknown print engine: {engine}")


async def generate_pdf_from_markdown(
    markdown_text: str,
    rule: FormattingRule,
    *,
    engine: Optional[PrintEngine] = None,
) -> bytes:
    return await generate_pdf_from_html(markdown_to_html(markdown_text, rule), rule, engine=engine)


async def generate_pdf_from_html(
    html: str,
    rule: FormattingRule,
    *,
    engine: Optional[PrintEngine] = None,
) -> bytes:
    """Print an already wrapped document with the page geometry of ``rule``."""
    engine = engine or get_print_engine()
    page_format = page_format_for(rule)

    logger.debug(f"Printing {len(html)} chars of HTML with {engine.name} ({page_format.format})")
    try:
        pdf_bytes = await engine.print_pdf(html, page_format)
    except Exception as e:
        logger.error(f"Failed to print PDF with {engine.name}: {e}", exc_info=True)
        raise

    logger.info(f"Successfully rendered PDF: {len(pdf_bytes)} bytes")
    return pdf_bytes
