# uiharness/components/element.py
from __future__ import annotations

"""Staleness-aware element handle
---------------------------------
Wraps a Playwright ElementHandle together with the selector (and optional
parent handle) it was located with, so it can re-resolve itself when the DOM
node it points to has been replaced. Staleness is only ever discovered on the
next access; `status()` reports it as a Resolution instead of an exception.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, TypeVar, Union

from playwright.async_api import ElementHandle, Error as PlaywrightError, Mouse, Page as PlaywrightPage

from uiharness.core.errors import (
    HarnessError,
    NotFoundFailure,
    OperationFailure,
    StaleReferenceFailure,
    is_not_found_failure,
    is_stale_failure,
    translate_error,
)
from uiharness.core.retry import with_retry
from uiharness.utils.config import Settings, get_settings
from uiharness.utils.logger import get_logger

log = get_logger(__name__)

E = TypeVar("E", bound="Element")

# What a condition factory receives: a zero-argument callable returning an element
Accessor = Callable[[], Union["Element", Awaitable["Element"]]]

_IS_CONNECTED = "el => el.isConnected"
_SCRIPT_CLICK = """
el => {
  if (!el.isConnected) { throw new Error('Element is not attached to the DOM'); }
  el.click();
}
"""
_Z_INDEX = "el => getComputedStyle(el).zIndex"
_IS_SELECTED = "el => !!(el.checked || el.selected)"


def convert_selector(selector: str) -> str:
    """XPath when the selector contains '//', CSS otherwise."""
    return f"xpath={selector}" if "//" in selector else f"css={selector}"


def xpath_literal(text: str) -> str:
    """Quote `text` as an XPath string literal, using concat() when it holds both quote kinds."""
    if '"' not in text:
        return f'"{text}"'
    if "'" not in text:
        return f"'{text}'"
    pieces = text.split('"')
    return "concat(" + ", '\"', ".join(f'"{p}"' for p in pieces) + ")"


# ---------- Resolution (tagged result) ----------

class ElementState(str, Enum):
    fresh = "fresh"
    stale = "stale"
    not_found = "not_found"


@dataclass(frozen=True)
class Resolution:
    state: ElementState
    handle: Optional[ElementHandle] = None
    error: Optional[HarnessError] = None

    @property
    def is_fresh(self) -> bool:
        return self.state == ElementState.fresh

    @property
    def is_gone(self) -> bool:
        return self.state in (ElementState.stale, ElementState.not_found)


class Element:
    """A located element. Components (Button, TextInput) subclass this."""

    def __init__(
        self,
        handle: ElementHandle,
        selector: str,
        parent: Optional[ElementHandle] = None,
        page: Optional[PlaywrightPage] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.handle = handle
        self.selector = selector
        self.parent = parent
        self.page = page
        self.settings = settings or get_settings()

    def __repr__(self) -> str:
        scope = " (scoped)" if self.parent is not None else ""
        return f"<{type(self).__name__} {self.selector!r}{scope}>"

    # ---------- Location ----------

    @classmethod
    async def locate(
        cls: Type[E],
        root: Union[PlaywrightPage, ElementHandle],
        selector: str,
        *,
        page: Optional[PlaywrightPage] = None,
        parent: Optional[ElementHandle] = None,
        settings: Optional[Settings] = None,
    ) -> E:
        """Resolve exactly one element under `root` or raise NotFoundFailure."""
        try:
            handle = await root.query_selector(convert_selector(selector))
        except PlaywrightError as exc:
            raise translate_error(exc, selector) from exc
        if handle is None:
            raise NotFoundFailure(selector)
        return cls(handle, selector, parent=parent, page=page, settings=settings)

    @classmethod
    async def locate_all(
        cls: Type[E],
        root: Union[PlaywrightPage, ElementHandle],
        selector: str,
        *,
        page: Optional[PlaywrightPage] = None,
        parent: Optional[ElementHandle] = None,
        settings: Optional[Settings] = None,
    ) -> List[E]:
        try:
            handles = await root.query_selector_all(convert_selector(selector))
        except PlaywrightError as exc:
            raise translate_error(exc, selector) from exc
        return [cls(h, selector, parent=parent, page=page, settings=settings) for h in handles]

    async def refetch(self) -> ElementHandle:
        """Re-resolve via the locating selector (scoped to the parent) and replace the handle."""
        root = self.parent if self.parent is not None else self.page
        if root is None:
            raise StaleReferenceFailure(self.selector, f"Cannot refetch {self.selector!r}: no page or parent to search")
        fresh = await type(self).locate(root, self.selector, page=self.page, parent=self.parent, settings=self.settings)
        self.handle = fresh.handle
        return self.handle

    async def _driver(self, fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """Invoke a Playwright call, translating its errors into the harness taxonomy."""
        try:
            return await fn(*args, **kwargs)
        except PlaywrightError as exc:
            raise translate_error(exc, self.selector) from exc

    # ---------- Staleness ----------

    async def ensure_attached(self) -> None:
        """Cheap attachment check; raises StaleReferenceFailure once the node left the document."""
        if not await self._driver(self.handle.evaluate, _IS_CONNECTED):
            raise StaleReferenceFailure(self.selector)

    async def status(self) -> Resolution:
        """Report Fresh / Stale / NotFound without raising for those states."""
        try:
            await self.ensure_attached()
        except StaleReferenceFailure as exc:
            return Resolution(ElementState.stale, error=exc)
        except NotFoundFailure as exc:
            return Resolution(ElementState.not_found, error=exc)
        return Resolution(ElementState.fresh, handle=self.handle)

    async def resolve(self) -> Resolution:
        """Check status, and on staleness try one refetch through the locating selector."""
        resolution = await self.status()
        if resolution.state != ElementState.stale:
            return resolution
        try:
            handle = await self.refetch()
        except NotFoundFailure as exc:
            return Resolution(ElementState.not_found, error=exc)
        except StaleReferenceFailure as exc:
            return Resolution(ElementState.stale, error=exc)
        return Resolution(ElementState.fresh, handle=handle)

    async def exists(self) -> bool:
        return (await self.status()).is_fresh

    async def is_stale(self) -> bool:
        return (await self.status()).state == ElementState.stale

    async def is_not_stale(self) -> bool:
        return not await self.is_stale()

    # ---------- Attributes & state ----------

    async def get_attribute(self, name: str) -> Optional[str]:
        return await self._driver(self.handle.get_attribute, name)

    async def has_attribute(self, *names: str) -> bool:
        for name in names:
            if await self.get_attribute(name) is not None:
                return True
        return False

    async def has_class(self, *class_names: str) -> bool:
        classes = (await self.get_attribute("class") or "").split()
        return any(name in classes for name in class_names)

    async def has_style(self, *styles: str) -> bool:
        style = await self.get_attribute("style") or ""
        return any(s in style for s in styles)

    async def get_text(self) -> str:
        return await self._driver(self.handle.inner_text)

    async def get_z_index(self) -> int:
        raw = await self._driver(self.handle.evaluate, _Z_INDEX)
        match = re.match(r"^\s*(-?\d+)", str(raw or ""))
        return int(match.group(1)) if match else 0

    async def get_location(self) -> Dict[str, float]:
        box = await self._box()
        return {"x": box["x"], "y": box["y"]}

    async def get_size(self) -> Dict[str, float]:
        box = await self._box()
        return {"width": box["width"], "height": box["height"]}

    async def get_top_left_corner(self) -> Dict[str, float]:
        return await self.get_location()

    async def get_top_right_corner(self) -> Dict[str, float]:
        box = await self._box()
        return {"x": box["x"] + box["width"], "y": box["y"]}

    async def get_bottom_left_corner(self) -> Dict[str, float]:
        box = await self._box()
        return {"x": box["x"], "y": box["y"] + box["height"]}

    async def get_bottom_right_corner(self) -> Dict[str, float]:
        box = await self._box()
        return {"x": box["x"] + box["width"], "y": box["y"] + box["height"]}

    async def _box(self) -> Dict[str, float]:
        box = await self._driver(self.handle.bounding_box)
        return box or {"x": 0, "y": 0, "width": 0, "height": 0}

    async def is_displayed(self) -> bool:
        """Rendered and neither display:none nor visibility:hidden. Raises when gone."""
        await self.ensure_attached()
        if not await self._driver(self.handle.is_visible):
            return False
        return not await self.has_style("visibility: hidden", "display: none")

    async def is_not_displayed(self) -> bool:
        return not await self.is_displayed()

    async def is_enabled(self) -> bool:
        """
        Native enabled state, and not marked disabled for assistive tech
        (aria-disabled) or by the widget library's disabled class.
        """
        await self.ensure_attached()
        if not await self._driver(self.handle.is_enabled):
            return False
        if await self.get_attribute("aria-disabled") == "true":
            return False
        return not await self.has_class(self.settings.DISABLED_CLASS)

    async def is_disabled(self) -> bool:
        return not await self.is_enabled()

    async def is_selected(self) -> bool:
        return bool(await self._driver(self.handle.evaluate, _IS_SELECTED))

    # ---------- Children ----------

    async def _get_child_once(self, selector: str) -> "Element":
        return await Element.locate(self.handle, selector, page=self.page, parent=self.handle, settings=self.settings)

    async def get_child(self, selector: str) -> "Element":
        """Descendant matching `selector`; retried while it is not found yet."""
        return await with_retry(
            self._get_child_once, is_not_found_failure, self.settings.RETRY_MAX_ATTEMPTS
        )(selector)

    async def get_children(self, selector: str) -> List["Element"]:
        return await Element.locate_all(self.handle, selector, page=self.page, parent=self.handle, settings=self.settings)

    async def has_child(self, selector: str) -> bool:
        return len(await self.get_children(selector)) > 0

    async def has_children(self) -> bool:
        return await self.has_child("*")

    # ---------- Actions ----------

    async def _click_once(self) -> None:
        try:
            await self.refetch()
            await self._driver(self.handle.click)
        except Exception as click_err:
            try:
                await self._driver(self.handle.evaluate, _SCRIPT_CLICK)
            except Exception:
                raise click_err
            log.debug(f"Native click on {self.selector!r} failed ({click_err!r}); script click succeeded")

    async def click(self) -> None:
        """
        Click, falling back to a script click on the last known node. If both
        fail the native click error is raised; stale failures are retried.
        """
        await with_retry(self._click_once, is_stale_failure, self.settings.RETRY_MAX_ATTEMPTS)()

    async def right_click(self) -> None:
        await self._driver(self.handle.click, button="right")

    async def hover(self) -> None:
        await self._driver(self.handle.hover)

    async def clear(self) -> None:
        await self._driver(self.handle.fill, "")

    # ---------- Dragging ----------

    def _mouse(self) -> Mouse:
        if self.page is None:
            raise OperationFailure(f"Cannot drag {self.selector!r}: element is not bound to a page")
        return self.page.mouse

    async def _drag(self, start: Dict[str, float], dx: float, dy: float) -> None:
        """Press at `start`, move by (dx, dy) one pixel per step, release."""
        mouse = self._mouse()
        await self._driver(mouse.move, start["x"], start["y"])
        await self._driver(mouse.down)
        steps = max(1, int(max(abs(dx), abs(dy))))
        await self._driver(mouse.move, start["x"] + dx, start["y"] + dy, steps=steps)
        await self._driver(mouse.up)

    async def drag_to(
        self,
        target: Union["Element", Dict[str, float]],
        start_offset: Optional[Dict[str, float]] = None,
    ) -> None:
        """
        Drag this element.

        `target` is either another Element (this element's top-left corner is
        dragged onto the target's top-left corner) or an {"x", "y"} offset
        relative to where the drag starts. The drag starts `start_offset` from
        the top-left corner, or at the center when no offset is given. Moves
        one pixel per step, which resize handles need.
        """
        if isinstance(target, Element):
            await self.drag_to_element(target)
            return
        box = await self._box()
        if start_offset is None:
            start = {"x": box["x"] + box["width"] / 2, "y": box["y"] + box["height"] / 2}
        else:
            start = {"x": box["x"] + start_offset["x"], "y": box["y"] + start_offset["y"]}
        await self._drag(start, target["x"], target["y"])

    async def drag_to_element(self, other: "Element") -> None:
        """Drag from this element's top-left corner onto `other`'s top-left corner."""
        origin = await self.get_top_left_corner()
        destination = await other.get_top_left_corner()
        await self._drag(origin, destination["x"] - origin["x"], destination["y"] - origin["y"])

    async def drag_around_bounds(self) -> None:
        """Press at the top-left corner and drag diagonally across the element's full size."""
        box = await self._box()
        await self._drag({"x": box["x"], "y": box["y"]}, box["width"], box["height"])
