import asyncio

import pytest

from mdpress import print_engine
from mdpress.print_engine import (
    ChromiumPrintEngine,
    PageFormat,
    PrintEngineUnavailableError,
    page_format_for,
)
from mdpress.rules import FormattingRule


def _run(coro):
    return asyncio.run(coro)


class _FakePage:
    def __init__(self, calls: list, *, fail_on_content: bool = False) -> None:
        self.calls = calls
        self.fail_on_content = fail_on_content

    async def set_content(self, html: str, **kwargs) -> None:
        self.calls.append(("set_content", html, kwargs))
        if self.fail_on_content:
            raise RuntimeError("content timeout")

    async def pdf(self, **kwargs) -> bytes:
        self.calls.append(("pdf", kwargs))
        return b"%PDF-1.4\n%fake"


class _FakeBrowser:
    def __init__(self, calls: list, *, fail_on_content: bool = False, fail_on_close: bool = False) -> None:
        self.calls = calls
        self.fail_on_content = fail_on_content
        self.fail_on_close = fail_on_close

    async def new_page(self) -> _FakePage:
        return _FakePage(self.calls, fail_on_content=self.fail_on_content)

    async def close(self) -> None:
        self.calls.append(("close",))
        if self.fail_on_close:
            raise RuntimeError("close failed")


class _FakeChromium:
    def __init__(self, browser: _FakeBrowser) -> None:
        self.browser = browser

    async def connect_over_cdp(self, endpoint: str) -> _FakeBrowser:
        self.browser.calls.append(("connect", endpoint))
        return self.browser

    async def launch(self, **kwargs) -> _FakeBrowser:
        self.browser.calls.append(("launch", kwargs))
        return self.browser


class _FakePlaywright:
    def __init__(self, browser: _FakeBrowser) -> None:
        self.chromium = _FakeChromium(browser)

    async def __aenter__(self) -> "_FakePlaywright":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None


def _factory(browser: _FakeBrowser):
    return lambda: _FakePlaywright(browser)


FORMAT = PageFormat(format="A4", margin_top="20mm", margin_right="20mm", margin_bottom="20mm", margin_left="20mm")


def test_page_format_for_rule() -> None:
    letter = page_format_for(FormattingRule(page_size="Letter", margin_top=30, margin_left=5))
    other = page_format_for(FormattingRule(page_size="Tabloid"))

    assert letter.format == "Letter"
    assert letter.margins() == {"top": "30mm", "right": "20mm", "bottom": "20mm", "left": "5mm"}
    assert letter.print_background is True
    assert other.format == "A4"


def test_connects_to_remote_browser_and_releases() -> None:
    calls: list = []
    engine = ChromiumPrintEngine(ws_endpoint="ws://browser:3000", playwright_factory=_factory(_FakeBrowser(calls)))

    pdf = _run(engine.print_pdf("<html></html>", FORMAT))

    assert pdf.startswith(b"%PDF")
    assert calls[0] == ("connect", "ws://browser:3000")
    assert calls[1][0] == "set_content"
    assert calls[1][2]["wait_until"] == "networkidle"
    assert calls[2] == (
        "pdf",
        {"format": "A4", "margin": FORMAT.margins(), "print_background": True},
    )
    assert calls[-1] == ("close",)


def test_launches_local_executable(tmp_path, monkeypatch) -> None:
    chrome = tmp_path / "chrome"
    chrome.write_text("")
    calls: list = []
    engine = ChromiumPrintEngine(executable_path=str(chrome), playwright_factory=_factory(_FakeBrowser(calls)))

    _run(engine.print_pdf("<html></html>", FORMAT))

    launch = calls[0]
    assert launch[0] == "launch"
    assert launch[1]["executable_path"] == str(chrome)
    assert launch[1]["headless"] is True
    assert "--no-sandbox" in launch[1]["args"]
    assert calls[-1] == ("close",)


def test_missing_executable_is_reported(monkeypatch) -> None:
    monkeypatch.setattr(print_engine, "find_chrome_executable", lambda explicit=None: None)
    calls: list = []
    engine = ChromiumPrintEngine(playwright_factory=_factory(_FakeBrowser(calls)))

    with pytest.raises(PrintEngineUnavailableError, match="Chrome not found"):
        _run(engine.print_pdf("<html></html>", FORMAT))
    assert calls == []


def test_browser_released_when_render_fails() -> None:
    calls: list = []
    browser = _FakeBrowser(calls, fail_on_content=True)
    engine = ChromiumPrintEngine(ws_endpoint="ws://browser", playwright_factory=_factory(browser))

    with pytest.raises(RuntimeError, match="content timeout"):
        _run(engine.print_pdf("<html></html>", FORMAT))
    assert calls[-1] == ("close",)


def test_release_failure_does_not_mask_render_failure() -> None:
    calls: list = []
    browser = _FakeBrowser(calls, fail_on_content=True, fail_on_close=True)
    engine = ChromiumPrintEngine(ws_endpoint="ws://browser", playwright_factory=_factory(browser))

    with pytest.raises(RuntimeError, match="content timeout"):
        _run(engine.print_pdf("<html></html>", FORMAT))
    assert ("close",) in calls


def test_release_failure_after_success_keeps_pdf(caplog) -> None:
    calls: list = []
    browser = _FakeBrowser(calls, fail_on_close=True)
    engine = ChromiumPrintEngine(ws_endpoint="ws://browser", playwright_factory=_factory(browser))

    with caplog.at_level("WARNING", logger="mdpress.print_engine"):
        pdf = _run(engine.print_pdf("<html></html>", FORMAT))

    assert pdf.startswith(b"%PDF")
    assert "Failed to disconnect from browser" in caplog.text


def test_find_chrome_executable_prefers_explicit_path(tmp_path, monkeypatch) -> None:
    chrome = tmp_path / "my-chrome"
    chrome.write_text("")
    monkeypatch.setattr(print_engine.shutil, "which", lambda name: None)

    assert print_engine.find_chrome_executable(str(chrome)) == str(chrome)


def test_find_chrome_executable_falls_back_to_path(monkeypatch) -> None:
    monkeypatch.setattr(print_engine, "CHROME_CANDIDATES", ())
    monkeypatch.setattr(print_engine.shutil, "which", lambda name: "/opt/bin/chromium" if name == "chromium" else None)

    assert print_engine.find_chrome_executable(None) == "/opt/bin/chromium"
