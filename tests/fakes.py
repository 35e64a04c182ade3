# tests/fakes.py
"""
In-memory stand-ins for PageSession and Playwright locators.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple


class FakeLocator:
    """
    Minimal stand-in for a Playwright Locator.

    The path of selectors used to reach the locator is recorded so the fake
    page can decide what exists.
    """

    def __init__(self, page: "FakePage", path: Tuple) -> None:
        self.page = page
        self.path = path

    @property
    def first(self) -> "FakeLocator":
        return FakeLocator(self.page, self.path + (("nth", 0),))

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self.page, self.path + (("nth", index),))

    def locator(self, selector: str) -> "FakeLocator":
        return FakeLocator(self.page, self.path + (("sel", selector),))

    def _cell(self) -> Optional[Tuple[int, int]]:
        # Path shape for a trigger: tbody, first, tr, nth(row), td, nth(col), button, first
        nths = [value for kind, value in self.path if kind == "nth"]
        sels = [value for kind, value in self.path if kind == "sel"]
        if sels[-1:] == ["button"] and len(nths) >= 3:
            return nths[1], nths[2]
        return None

    async def count(self) -> int:
        cell = self._cell()
        if cell is not None:
            return 1 if cell in self.page.triggers else 0
        if self.path and self.path[0] == ("sel", self.page.tooltip_selector):
            return 1 if self.page.open_tooltip is not None else 0
        return 1

    async def click(self) -> None:
        cell = self._cell()
        self.page.events.append(("click", cell))
        if cell in self.page.click_errors:
            raise self.page.click_errors[cell]
        self.page.open_tooltip = self.page.triggers.get(cell)

    async def is_visible(self) -> bool:
        return self.page.open_tooltip is not None

    async def text_content(self) -> Optional[str]:
        return self.page.open_tooltip


class FakePage:
    """
    Records every interaction so tests can assert on ordering.
    """

    def __init__(
        self,
        html: str = "",
        triggers: Optional[Dict[Tuple[int, int], Optional[str]]] = None,
        tooltip_selector: str = ".MuiTooltip-tooltip",
    ) -> None:
        self.html = html
        self.triggers = triggers or {}
        self.tooltip_selector = tooltip_selector
        self.click_errors: Dict[Tuple[int, int], Exception] = {}
        self.open_tooltip: Optional[str] = None
        self.events: List[Tuple] = []


class FakeSession:
    """
    Duck-typed PageSession backed by a FakePage.
    """

    def __init__(self, page: FakePage, url: str = "https://example.com/cards", navigate_error: Exception = None):
        self._page = page
        self.url = url
        self.navigate_error = navigate_error
        self.is_open = False

    async def open(self) -> None:
        self._page.events.append(("open",))
        self.is_open = True

    async def navigate(self, url: str) -> None:
        self._page.events.append(("navigate", url))
        if self.navigate_error is not None:
            raise self.navigate_error
        self.url = url

    async def content(self) -> str:
        return self._page.html

    def locate(self, selector: str) -> FakeLocator:
        return FakeLocator(self._page, (("sel", selector),))

    async def wait(self, ms: int) -> None:
        self._page.events.append(("wait", ms))

    async def press(self, key: str) -> None:
        self._page.events.append(("press", key))
        if key == "Escape":
            self._page.open_tooltip = None

    async def screenshot(self, path: str = None) -> bytes:
        self._page.events.append(("screenshot", path))
        return b""

    async def close(self) -> None:
        self._page.events.append(("close",))
        self.is_open = False
