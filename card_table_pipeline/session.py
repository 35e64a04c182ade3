# card_table_pipeline/session.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from playwright.async_api import Browser, Locator, Page, Playwright, async_playwright

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class ScrapeConfig:
    """
    Configuration for one scrape attempt.

    Determines which page we load, how long we wait for it, and which
    selectors identify the results table and its tooltips.
    """

    # Comparison-table page to load
    url: str

    # First element matching this selector holds the card rows
    table_body_selector: str = "tbody"

    # Floating element that appears after a tooltip trigger is clicked
    tooltip_selector: str = ".MuiTooltip-tooltip"

    # Hard bound on the initial page load
    navigation_timeout_ms: int = 60000

    # Fixed delay after navigation so client-side rendering can finish
    settle_ms: int = 3000

    # Tooltip render latency after a click
    tooltip_wait_ms: int = 1000

    # Browser launch options
    headless: bool = True
    slow_mo_ms: int = 0
    viewport_width: int = 1280
    viewport_height: int = 720
    user_agent: str = DEFAULT_USER_AGENT


class SessionError(Exception):
    """Raised when the browser session cannot serve a request"""
    pass


class SessionNotInitialized(SessionError):
    """Raised when a page operation is attempted before open()"""
    pass


class PageSession:
    """
    Thin owner of one Playwright browser and page.

    Responsibilities:
    - Launch and close Chromium with a desktop User-Agent and viewport
    - Navigate with a hard timeout plus a fixed settle delay
    - Expose the DOM (HTML snapshot, locators, evaluate) and basic input
    - Forward browser console output to the logger

    The session is single-page, single-task state: callers must await each
    operation before issuing the next.
    """

    def __init__(self, config: ScrapeConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None

    async def __aenter__(self) -> "PageSession":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def is_open(self) -> bool:
        return self._page is not None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise SessionNotInitialized("Browser not initialized. Call open() first.")
        return self._page

    @property
    def url(self) -> str:
        return self.page.url

    async def open(self) -> None:
        if self._page is not None:
            return

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            slow_mo=self.config.slow_mo_ms,
            args=["--no-sandbox", "--disable-setuid-sandbox"],
        )
        self._page = await self._browser.new_page()
        await self._page.set_extra_http_headers({"User-Agent": self.config.user_agent})
        await self._page.set_viewport_size(
            {"width": self.config.viewport_width, "height": self.config.viewport_height}
        )
        self._page.on("console", lambda msg: logger.debug("Browser console [%s]: %s", msg.type, msg.text))
        logger.info("Browser session opened (headless=%s)", self.config.headless)

    async def close(self) -> None:
        try:
            if self._browser is not None:
                await self._browser.close()
                logger.info("Browser closed.")
        finally:
            if self._playwright is not None:
                await self._playwright.stop()
            self._browser = None
            self._playwright = None
            self._page = None

    async def navigate(self, url: str) -> None:
        """
        Load url and wait for the page to settle. Playwright timeouts
        propagate to the caller.
        """
        logger.info("Navigating to %s (timeout=%dms)", url, self.config.navigation_timeout_ms)
        await self.page.goto(url, wait_until="domcontentloaded", timeout=self.config.navigation_timeout_ms)
        if self.config.settle_ms > 0:
            await self.page.wait_for_timeout(self.config.settle_ms)

    async def content(self) -> str:
        return await self.page.content()

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self.page.evaluate(script, arg)

    def locate(self, selector: str) -> Locator:
        return self.page.locator(selector)

    async def wait(self, ms: int) -> None:
        await self.page.wait_for_timeout(ms)

    async def press(self, key: str) -> None:
        await self.page.keyboard.press(key)

    async def screenshot(self, path: Optional[str] = None) -> bytes:
        return await self.page.screenshot(path=path, full_page=True)
