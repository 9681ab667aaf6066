"""
Print engines

Adapters that turn a complete HTML document into PDF bytes. The Chromium
engine drives a headless browser through Playwright, either connected to a
remote instance or launched from a locally installed executable. The
WeasyPrint engine renders in-process and relies on the document's own
``@page`` rules.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .rules import FormattingRule


logger = logging.getLogger(__name__)


CHROME_CANDIDATES = (
    "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
    "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
    "/usr/bin/google-chrome",
    "/usr/bin/chromium-browser",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
)

CHROME_COMMANDS = ("google-chrome", "chromium", "chromium-browser")

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


class PdfExportError(RuntimeError):
    pass


class PrintEngineUnavailableError(PdfExportError):
    pass


@dataclass(frozen=True)
class PageFormat:
    format: str
    margin_top: str
    margin_right: str
    margin_bottom: str
    margin_left: str
    print_background: bool = True

    def margins(self) -> dict[str, str]:
        return {
            "top": self.margin_top,
            "right": self.margin_right,
            "bottom": self.margin_bottom,
            "left": self.margin_left,
        }


def page_format_for(rule: FormattingRule) -> PageFormat:
    return PageFormat(
        format="Letter" if rule.page_size == "Letter" else "A4",
        margin_top=f"{rule.margin_top}mm",
        margin_right=f"{rule.margin_right}mm",
        margin_bottom=f"{rule.margin_bottom}mm",
        margin_left=f"{rule.margin_left}mm",
    )


def find_chrome_executable(explicit_path: Optional[str] = None) -> Optional[str]:
    for path in (explicit_path, *CHROME_CANDIDATES):
        if path and os.path.exists(path):
            return path
    for command in CHROME_COMMANDS:
        found = shutil.which(command)
        if found:
            return found
    return None


class PrintEngine(ABC):
    """
    Interface for print engines.

    Implementations acquire whatever resources they need for one call and
    release them before returning, whether printing succeeded or not.
    """

    name = "engine"

    @abstractmethod
    async def print_pdf(self, html: str, page_format: PageFormat) -> bytes:
        """
        Print an HTML document to PDF.

        Args:
            html: Complete HTML document
            page_format: Named page size, margins and background flag

        Returns:
            PDF content as bytes

        Raises:
            PrintEngineUnavailableError: If the engine cannot be obtained
        """


class ChromiumPrintEngine(PrintEngine):
    """Headless Chrome/Chromium driven through Playwright."""

    name = "chromium"

    def __init__(
        self,
        *,
        ws_endpoint: Optional[str] = None,
        executable_path: Optional[str] = None,
        set_content_timeout_ms: float = 30000.0,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self.ws_endpoint = ws_endpoint
        self.executable_path = executable_path
        self.set_content_timeout_ms = set_content_timeout_ms
        self._playwright_factory = playwright_factory

    @asynccontextmanager
    async def _browser(self) -> AsyncIterator[Any]:
        executable: Optional[str] = None
        if not self.ws_endpoint:
            executable = find_chrome_executable(self.executable_path)
            if executable is None:
                raise PrintEngineUnavailableError(
                    "Chrome not found. Set BROWSER_WS_ENDPOINT or CHROME_PATH environment variable."
                )

        async with self._playwright_factory() as playwright:
            connected = executable is None
            try:
                if connected:
                    logger.debug(f"Connecting to browser at {self.ws_endpoint}")
                    browser = await playwright.chromium.connect_over_cdp(self.ws_endpoint)
                else:
                    logger.debug(f"Launching browser: {executable}")
                    browser = await playwright.chromium.launch(
                        executable_path=executable,
                        headless=True,
                        args=LAUNCH_ARGS,
                    )
            except PlaywrightError as exc:
                target = self.ws_endpoint if connected else executable
                raise PrintEngineUnavailableError(f"Could not start browser session ({target}): {exc}") from exc

            try:
                yield browser
            finally:
                await self._release(browser, connected=connected)

    async def _release(self, browser: Any, *, connected: bool) -> None:
        # For a CDP connection close() only disconnects; a launched browser is shut down.
        action = "disconnect from" if connected else "close"
        try:
            await browser.close()
        except Exception:
            logger.warning(f"Failed to {action} browser", exc_info=True)

    async def print_pdf(self, html: str, page_format: PageFormat) -> bytes:
        async with self._browser() as browser:
            page = await browser.new_page()
            await page.set_content(html, wait_until="networkidle", timeout=self.set_content_timeout_ms)
            return await page.pdf(
                format=page_format.format,
                margin=page_format.margins(),
                print_background=page_format.print_background,
            )


class WeasyPrintEngine(PrintEngine):
    """In-process renderer; page geometry comes from the document's ``@page`` rule."""

    name = "weasyprint"

    def __init__(self, base_url: Optional[str] = None) -> None:
        self.base_url = base_url

    def _write_pdf(self, html: str) -> bytes:
        try:
            from weasyprint import HTML  # lazy import
        except (ImportError, OSError) as exc:
            raise PrintEngineUnavailableError(f"WeasyPrint is not usable: {exc}") from exc
        return HTML(string=html, base_url=self.base_url).write_pdf()

    async def print_pdf(self, html: str, page_format: PageFormat) -> bytes:
        return await asyncio.to_thread(self._write_pdf, html)
