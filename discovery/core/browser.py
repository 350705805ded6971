"""Headless browser page session used by the deep scan and order-surface probe."""

from __future__ import annotations

import logging
from typing import Pattern

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)
DEFAULT_TIMEOUT_MS = 30_000
VIEWPORT = {"width": 1280, "height": 800}


class PlaywrightPageSession:
    """Thin wrapper around a single Playwright page.

    The session owns its browser for its whole lifetime and must be closed;
    use it as a context manager.
    """

    def __init__(self, timeout_ms: int = DEFAULT_TIMEOUT_MS, *, headless: bool = True) -> None:
        self._timeout_ms = min(timeout_ms, DEFAULT_TIMEOUT_MS)
        self._headless = headless
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    def open(self) -> "PlaywrightPageSession":
        self._playwright = sync_playwright().start()
        try:
            self._browser = self._playwright.chromium.launch(headless=self._headless)
            self._context = self._browser.new_context(user_agent=BROWSER_USER_AGENT, viewport=VIEWPORT)
            self._page = self._context.new_page()
            self._page.set_default_timeout(self._timeout_ms)
        except Exception:
            self.close()
            raise
        return self

    @property
    def page(self):
        if self._page is None:
            raise RuntimeError("Page session is not open")
        return self._page

    @property
    def url(self) -> str:
        return self.page.url

    def goto(self, url: str) -> None:
        self.page.goto(url, wait_until="domcontentloaded")

    def wait_for_settle(self, timeout_ms: int) -> None:
        """Wait for network idle, giving up quietly after ``timeout_ms``."""
        try:
            self.page.wait_for_load_state("domcontentloaded", timeout=timeout_ms)
            self.page.wait_for_load_state("networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug("Page did not settle within %sms: %s", timeout_ms, self.page.url)

    def wait(self, ms: int) -> None:
        self.page.wait_for_timeout(ms)

    def title(self) -> str:
        try:
            return self.page.title() or ""
        except PlaywrightError:
            return ""

    def body_text(self, timeout_ms: int) -> str:
        try:
            return self.page.locator("body").inner_text(timeout=timeout_ms)
        except PlaywrightError:
            return ""

    def content(self) -> str:
        return self.page.content()

    def count_selector(self, selector: str) -> int:
        try:
            return self.page.locator(selector).count()
        except PlaywrightError:
            return 0

    def scroll(self, delta_y: int) -> None:
        try:
            self.page.mouse.wheel(0, delta_y)
        except PlaywrightError:
            logger.debug("Scroll failed on %s", self.page.url)

    def is_role_visible(self, role: str, name: Pattern[str]) -> bool:
        try:
            return self.page.get_by_role(role, name=name).first.is_visible()
        except PlaywrightError:
            return False

    def click_role(self, role: str, name: Pattern[str], timeout_ms: int) -> bool:
        """Click the first visible element with ``role`` whose accessible name matches."""
        locator = self.page.get_by_role(role, name=name).first
        return self._click_visible(locator, timeout_ms)

    def click_selector(self, selector: str, timeout_ms: int) -> bool:
        locator = self.page.locator(selector).first
        return self._click_visible(locator, timeout_ms)

    def _click_visible(self, locator, timeout_ms: int) -> bool:
        try:
            if not locator.is_visible():
                return False
            locator.click(timeout=timeout_ms)
        except PlaywrightError as exc:
            logger.debug("Click failed: %s", exc)
            return False
        return True

    def close(self) -> None:
        """Tear down page, browser and driver; each step runs even if an earlier one fails."""
        steps = (
            ("context", self._context, "close"),
            ("browser", self._browser, "close"),
            ("playwright", self._playwright, "stop"),
        )
        try:
            for name, resource, method in steps:
                if resource is None:
                    continue
                try:
                    getattr(resource, method)()
                except Exception as exc:  # noqa: BLE001
                    logger.debug("Closing %s failed: %s", name, exc)
        finally:
            self._page = None
            self._context = None
            self._browser = None
            self._playwright = None

    def __enter__(self) -> "PlaywrightPageSession":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_page_session(timeout_ms: int = DEFAULT_TIMEOUT_MS) -> PlaywrightPageSession:
    """Default session factory for browser-driven scans."""
    return PlaywrightPageSession(timeout_ms=timeout_ms)
