# uiharness/components/scroll_bar.py
from __future__ import annotations

"""Scrollable container
-----------------------
Scrolls a container with the arrow keys until a target selector shows up in
the page, or until the container cannot scroll any further that way.
"""

from enum import Enum

from uiharness.components.element import Element
from uiharness.core.retry import with_retry
from uiharness.utils.logger import get_logger
from uiharness.utils.timing import async_sleep_ms

log = get_logger(__name__)


class ScrollDirection(Enum):
    # (key pressed per step, script telling whether the container hit that edge)
    down = ("ArrowDown", "el => el.scrollTop + el.clientHeight >= el.scrollHeight")
    up = ("ArrowUp", "el => el.scrollTop <= 0")
    left = ("ArrowLeft", "el => el.scrollLeft <= 0")
    right = ("ArrowRight", "el => el.scrollLeft + el.clientWidth >= el.scrollWidth")

    @property
    def key(self) -> str:
        return self.value[0]

    @property
    def at_edge_script(self) -> str:
        return self.value[1]


class ScrollBar(Element):
    async def _is_found(self, selector: str) -> bool:
        return len(await Element.locate_all(self.page, selector, page=self.page, settings=self.settings)) > 0

    async def has_finished_scrolling(self, direction: ScrollDirection) -> bool:
        return bool(await self._driver(self.handle.evaluate, direction.at_edge_script))

    async def _scroll_once(self, selector: str, direction: ScrollDirection) -> None:
        if not await self.is_displayed() or await self._is_found(selector):
            return
        await self.click()
        steps = 0
        while not await self._is_found(selector) and not await self.has_finished_scrolling(direction):
            await self._driver(self.page.keyboard.press, direction.key)
            steps += 1
            await async_sleep_ms(self.settings.POLL_INTERVAL_MS)
        log.debug(f"Scrolled {self.selector!r} {direction.name} {steps} step(s) looking for {selector!r}")

    async def scroll(self, selector: str, direction: ScrollDirection) -> None:
        """Scroll in `direction` until `selector` matches or the edge is reached. Retried on any failure."""
        await with_retry(self._scroll_once, max_attempts=self.settings.RETRY_MAX_ATTEMPTS)(selector, direction)

    async def scroll_down(self, selector: str) -> None:
        await self.scroll(selector, ScrollDirection.down)

    async def scroll_up(self, selector: str) -> None:
        await self.scroll(selector, ScrollDirection.up)

    async def scroll_left(self, selector: str) -> None:
        await self.scroll(selector, ScrollDirection.left)

    async def scroll_right(self, selector: str) -> None:
        await self.scroll(selector, ScrollDirection.right)
