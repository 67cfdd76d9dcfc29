# uiharness/core/browser.py
from __future__ import annotations

"""Browser session
------------------
Wraps one Playwright page for the duration of a test. Owns the validator
registry (append-only) and the wait engine, and offers element lookups plus
the common waits built from the condition factories.
"""

import asyncio
import itertools
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Set, Type, TypeVar

from playwright.async_api import Dialog, Error as PlaywrightError, Page as PlaywrightPage, async_playwright

from uiharness.components.element import Accessor, Element, xpath_literal
from uiharness.core import conditions as cond
from uiharness.core.conditions import Condition
from uiharness.core.errors import NotFoundFailure, StaleReferenceFailure, translate_error
from uiharness.core.middleware import with_validation
from uiharness.core.retry import with_retry
from uiharness.core.waits import PollPrimitive, WaitEngine
from uiharness.utils.config import Settings, get_settings
from uiharness.utils.logger import get_logger, log_with_context
from uiharness.utils.timing import measure, poll_until
from uiharness.validators.validator import Handler, Validator, ValidatorRegistry

E = TypeVar("E", bound=Element)
PageT = TypeVar("PageT")

_session_ids = itertools.count(1)

_CURSOR_SCRIPT = """
() => {
  if (document.getElementById("uiharness-cursor")) { return; }
  const marker = document.createElement("div");
  marker.id = "uiharness-cursor";
  marker.style.cssText = "position: absolute; z-index: 2147483647; pointer-events: none; " +
    "width: 12px; height: 12px; margin: -6px 0 0 -6px; border-radius: 50%; " +
    "background: rgba(255, 0, 0, 0.6); border: 1px solid white;";
  document.body.appendChild(marker);
  document.addEventListener("mousemove", e => {
    marker.style.left = e.pageX + "px";
    marker.style.top = e.pageY + "px";
  }, true);
}
"""


class Browser:
    """One automation session: a Playwright page plus its validators and waits."""

    def __init__(
        self,
        page: PlaywrightPage,
        settings: Optional[Settings] = None,
        *,
        poll: PollPrimitive = poll_until,
        name: Optional[str] = None,
    ) -> None:
        self.page = page
        self.settings = settings or get_settings()
        self.name = name or f"session-{next(_session_ids)}"
        self.log = log_with_context(get_logger(__name__), session=self.name)
        self.validators = ValidatorRegistry(self)
        self.engine = WaitEngine(self, self.validators, poll=poll, settings=self.settings)
        self.valid = True
        self._closers: List[Callable[[], Awaitable[Any]]] = []
        self._dialogs: List[Dialog] = []
        self._dialog_tasks: Set["asyncio.Future[None]"] = set()
        self._accept_dialogs = False
        self._watch_dialogs(page)

    def __repr__(self) -> str:
        return f"<Browser {self.name} valid={self.valid}>"

    # ---------- Validators ----------

    def register_validator(self, handler: Handler) -> Validator:
        """
        Register a check run on every poll attempt of every wait.
        `handler` is a Validator or a plain callable (sync or async); a callable
        returning False fails validation.
        """
        return self.validators.register(handler)

    @property
    def handlers(self) -> List[Validator]:
        return list(self.validators)

    def validated(self, operation: Callable[..., Any]) -> Callable[..., Awaitable[Any]]:
        """`operation` followed by a validator pass."""
        return with_validation(operation, self.validators)

    # ---------- Core waits ----------

    async def wait_for_any(self, *conditions: Condition, timeout_ms: Optional[int] = None) -> None:
        """
        Wait until any condition is true. Anything a condition raises counts as
        "not yet"; validators run once per poll attempt.
        """
        await self.engine.wait_for_any(*conditions, timeout_ms=timeout_ms)

    async def wait_for(self, condition: Condition, timeout_ms: Optional[int] = None) -> None:
        await self.engine.wait_for(condition, timeout_ms=timeout_ms)

    # ---------- Lookup ----------

    async def find_element(self, selector: str, component: Optional[Type[E]] = None) -> E:
        """Locate one element (raises NotFoundFailure)."""
        kind = component or Element
        return await kind.locate(self.page, selector, page=self.page, settings=self.settings)  # type: ignore[return-value]

    async def find_elements(self, selector: str, component: Optional[Type[E]] = None) -> List[E]:
        kind = component or Element
        return await kind.locate_all(self.page, selector, page=self.page, settings=self.settings)  # type: ignore[return-value]

    async def exists(self, selector: str) -> bool:
        return len(await self.find_elements(selector)) > 0

    async def find_any(self, *selectors: str, component: Optional[Type[E]] = None) -> Optional[E]:
        """First of `selectors` that resolves to a displayed element, else None."""
        for selector in selectors:
            try:
                element = await self.find_element(selector, component)
                if await element.is_displayed():
                    return element
            except (NotFoundFailure, StaleReferenceFailure):
                continue
        return None

    def accessor(self, selector: str, component: Optional[Type[E]] = None) -> Accessor:
        """Zero-argument callable re-locating `selector` on every call."""
        def locate() -> Awaitable[Element]:
            return self.find_element(selector, component)
        locate.__name__ = selector
        return locate

    # ---------- Element waits ----------

    @measure("wait_until_visible")
    async def wait_until_visible(self, element: Accessor) -> None:
        await self.wait_for(cond.visible(element))

    @measure("wait_until_not_visible")
    async def wait_until_not_visible(self, element: Accessor) -> None:
        await self.wait_for(cond.not_visible(element))

    async def wait_until_clickable(self, element: Accessor) -> Element:
        await self.wait_for(cond.clickable(element))
        return await cond.resolve(element)

    async def wait_until_stale(self, element: Accessor) -> None:
        await self.wait_for(cond.does_not_exist(element))

    async def wait_until_disappears(self, selector: str, parent: Optional[str] = None) -> None:
        """
        Wait for `selector` (under `parent`, if given) to be hidden; returns at once if absent.
        `parent` and `selector` are joined as a CSS descendant selector, so both must be CSS.
        """
        locator = f"{parent} {selector}" if parent else selector
        if await self.exists(locator):
            await self.wait_until_not_visible(self.accessor(locator))

    async def wait_until_appears_and_disappears(self, selector: str, parent: Optional[str] = None) -> None:
        """
        E.g. a spinner: wait for it to show up, then for it to go away.
        `parent` and `selector` must both be CSS (see wait_until_disappears).
        """
        locator = f"{parent} {selector}" if parent else selector
        await self.wait_until_visible(self.accessor(locator))
        await self.wait_until_disappears(locator)

    async def wait_for_element_to_appear(self, selector: str, component: Optional[Type[E]] = None) -> E:
        await self.wait_until_visible(self.accessor(selector))
        return (await self.find_elements(selector, component))[0]

    async def wait_for_elements(self, selector: str, component: Optional[Type[E]] = None) -> List[E]:
        await self.wait_until_visible(self.accessor(selector))
        return await self.find_elements(selector, component)

    async def wait_for_any_element_visible(self, *selectors: str, component: Optional[Type[E]] = None) -> Optional[E]:
        await self.wait_for_any(*(cond.visible(self.accessor(s)) for s in selectors))
        return await self.find_any(*selectors, component=component)

    async def wait_for_element_with_text(self, text: str, component: Optional[Type[E]] = None) -> E:
        return await self.wait_for_element_to_appear(f"//*[text()={xpath_literal(text)}]", component)

    async def wait_for_element_on_top(self, lower_z_index: str, higher_z_index: str) -> None:
        """Wait until the element found by `lower_z_index` is stacked at least as high as the other."""
        first, second = self.accessor(lower_z_index), self.accessor(higher_z_index)

        async def on_top(_: "Browser") -> bool:
            return await (await first()).get_z_index() >= await (await second()).get_z_index()

        await self.wait_for(on_top)

    async def wait_for_element_to_have_attributes(self, selector: str, *attributes: str) -> None:
        await self.wait_for(cond.has_attributes(self.accessor(selector), *attributes))

    async def wait_for_element_to_not_have_attributes(self, selector: str, *attributes: str) -> None:
        await self.wait_for(cond.has_attributes(self.accessor(selector), *attributes, expected=False))

    async def wait_for_element_to_have_class(self, selector: str, *classes: str) -> None:
        await self.wait_for(cond.has_class(self.accessor(selector), *classes))

    async def wait_for_element_to_not_have_class(self, selector: str, *classes: str) -> None:
        await self.wait_for(cond.has_class(self.accessor(selector), *classes, expected=False))

    async def wait_for_element_to_have_style(self, selector: str, *styles: str) -> None:
        await self.wait_for(cond.has_style(self.accessor(selector), *styles))

    async def wait_for_element_to_not_have_style(self, selector: str, *styles: str) -> None:
        await self.wait_for(cond.has_style(self.accessor(selector), *styles, expected=False))

    # ---------- Page waits ----------

    async def wait_until_page_loaded(self, page: Callable[["Browser"], PageT]) -> PageT:
        await self.wait_for(cond.page_loaded(page))  # type: ignore[arg-type]
        return page(self)

    async def wait_until_any_page_loaded(self, *pages: Callable[["Browser"], Any]) -> None:
        await self.wait_for_any(*(cond.page_loaded(p) for p in pages))

    # ---------- URL ----------

    async def current_url(self) -> str:
        return self.page.url

    async def wait_until_url_contains(self, value: str) -> None:
        await self.wait_for(cond.url_contains(value))

    async def wait_until_url_not_contains(self, value: str) -> None:
        await self.wait_for(cond.url_contains(value, expected=False))

    # ---------- Navigation & dialogs ----------

    def _watch_dialogs(self, page: PlaywrightPage) -> None:
        page.on("dialog", self._on_dialog)

    def _on_dialog(self, dialog: Dialog) -> None:
        if self._accept_dialogs:
            self._dialog_tasks.add(asyncio.ensure_future(dialog.accept()))
        else:
            self._dialogs.append(dialog)

    async def _collect_dialog_tasks(self) -> List[BaseException]:
        tasks, self._dialog_tasks = self._dialog_tasks, set()
        if not tasks:
            return []
        results = await asyncio.gather(*tasks, return_exceptions=True)
        return [r for r in results if isinstance(r, BaseException)]

    async def _with_dialogs_accepted(self, operation: Callable[[], Awaitable[Any]]) -> None:
        """Run `operation` accepting every dialog it raises; a failed accept is re-raised afterwards."""
        self._accept_dialogs = True
        try:
            while self._dialogs:
                await self._dialogs.pop(0).accept()
            await operation()
            self._accept_dialogs = False
            failures = await self._collect_dialog_tasks()
            if failures:
                raise failures[0]
        except PlaywrightError as exc:
            raise translate_error(exc) from exc
        finally:
            self._accept_dialogs = False
            for leftover in await self._collect_dialog_tasks():
                self.log.debug(f"Accepting dialog failed after an earlier error: {leftover!r}")

    async def navigate(self, url: str) -> None:
        """Go to `url`, accepting any alert the navigation raises."""
        self.log.debug(f"Navigating to {url}")
        await self._with_dialogs_accepted(lambda: self.page.goto(url))

    async def refresh(self) -> None:
        await self._with_dialogs_accepted(self.page.reload)

    def has_alert(self) -> bool:
        return bool(self._dialogs)

    async def accept_alert(self) -> None:
        await self._dialogs.pop(0).accept()

    async def dismiss_alert(self) -> None:
        await self._dialogs.pop(0).dismiss()

    async def clear_cookies(self, url: Optional[str] = None) -> None:
        """
        Delete all cookies of the browser context. With `url`, visit it first
        and come back to the current page afterwards.
        """
        if url is None:
            await self._call(self.page.context.clear_cookies)
            return
        current = self.page.url
        await self.navigate(url)
        await self._call(self.page.context.clear_cookies)
        await self.navigate(current)

    async def show_cursor(self) -> None:
        """Draw a marker that follows the mouse, so recordings and headed runs show the pointer."""
        await self._call(self.page.evaluate, _CURSOR_SCRIPT)

    async def _call(self, fn: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        try:
            return await fn(*args)
        except PlaywrightError as exc:
            raise translate_error(exc) from exc

    async def type_to_focused_element(self, text: str) -> None:
        await self.page.keyboard.type(text)

    async def screenshot(self) -> bytes:
        """PNG bytes of the current viewport (retried on any driver failure)."""
        return await with_retry(self.page.screenshot, max_attempts=self.settings.RETRY_MAX_ATTEMPTS)()

    # ---------- Tabs & lifecycle ----------

    async def new_tab(self, url: Optional[str] = None) -> None:
        """Open a tab in the same context and make it current."""
        self.page = await self.page.context.new_page()
        self._watch_dialogs(self.page)
        if url:
            await self.navigate(url)

    async def close(self) -> None:
        """Close the current tab and fall back to the first remaining one."""
        context = self.page.context
        await self.page.close()
        remaining = context.pages
        if remaining:
            self.page = remaining[0]

    def on_quit(self, closer: Callable[[], Awaitable[Any]]) -> None:
        self._closers.append(closer)

    async def quit(self) -> None:
        if not self.valid:
            return
        self.valid = False
        try:
            await self.page.context.close()
        finally:
            for closer in reversed(self._closers):
                await closer()
        self.log.debug("Session closed")


@asynccontextmanager
async def open_browser(settings: Optional[Settings] = None, name: Optional[str] = None) -> AsyncIterator[Browser]:
    """Launch the configured Playwright browser and yield a Browser session on a new page."""
    s = settings or get_settings()
    async with async_playwright() as pw:
        launcher = getattr(pw, s.BROWSER_TYPE.value)
        driver = await launcher.launch(**s.playwright_launch_kwargs())
        context = await driver.new_context(**s.playwright_context_kwargs())
        session = Browser(await context.new_page(), settings=s, name=name)
        session.on_quit(driver.close)
        try:
            yield session
        finally:
            await session.quit()
