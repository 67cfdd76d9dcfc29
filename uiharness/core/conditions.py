# uiharness/core/conditions.py
from __future__ import annotations

"""Wait conditions
------------------
A Condition is an async predicate over the browser session. The factories here
close over element accessors (zero-argument callables returning an Element,
possibly awaitable) and must tell "not ready yet" apart from real failures:
NotFound / Stale while waiting for something to appear (or disappear) is an
answer, anything else is re-raised.
"""

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from uiharness.components.element import Accessor, Element
from uiharness.core.errors import NotFoundFailure, StaleReferenceFailure, is_gone_failure

if TYPE_CHECKING:
    from uiharness.core.browser import Browser
    from uiharness.pages.page import Page


Condition = Callable[["Browser"], Awaitable[bool]]
PageFactory = Callable[["Browser"], "Page"]

_GONE = (NotFoundFailure, StaleReferenceFailure)

__all__ = [
    "Condition",
    "Outcome",
    "OutcomeKind",
    "evaluate",
    "visible",
    "not_visible",
    "clickable",
    "present",
    "enabled",
    "does_not_exist",
    "above",
    "below",
    "page_loaded",
    "url_contains",
    "has_attributes",
    "has_class",
    "has_style",
]


async def resolve(accessor: Accessor) -> Element:
    element = accessor()
    if inspect.isawaitable(element):
        element = await element
    return element


def _named(name: str, condition: Condition) -> Condition:
    condition.__name__ = condition.__qualname__ = name
    return condition


# ---------- Tagged evaluation ----------

class OutcomeKind(str, Enum):
    ready = "ready"
    not_ready = "not_ready"
    error = "error"


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    error: Optional[BaseException] = None

    @property
    def is_ready(self) -> bool:
        return self.kind == OutcomeKind.ready

    @property
    def is_unexpected(self) -> bool:
        """An error that means something other than 'not there yet'."""
        return self.kind == OutcomeKind.error and not is_gone_failure(self.error)


async def evaluate(condition: Callable[[Any], Any], context: Any) -> Outcome:
    """Evaluate one condition once; never raises for Exception subclasses."""
    try:
        result = condition(context)
        if inspect.isawaitable(result):
            result = await result
    except Exception as exc:
        return Outcome(OutcomeKind.error, exc)
    return Outcome(OutcomeKind.ready if result is True else OutcomeKind.not_ready)


# ---------- Element conditions ----------

def visible(accessor: Accessor) -> Condition:
    """The element resolves and is rendered. Missing or stale reads as not yet."""
    async def condition(_: "Browser") -> bool:
        try:
            element = await resolve(accessor)
            return await element.is_displayed()
        except _GONE:
            return False
    return _named("visible", condition)


def not_visible(accessor: Accessor) -> Condition:
    """The element is absent, stale, or rendered hidden."""
    async def condition(_: "Browser") -> bool:
        try:
            element = await resolve(accessor)
            if (await element.status()).is_gone:
                return True
            return await element.is_not_displayed()
        except _GONE:
            return True
    return _named("not_visible", condition)


def clickable(accessor: Accessor) -> Condition:
    """Resolvable, not stale, visible and enabled."""
    async def condition(_: "Browser") -> bool:
        try:
            element = await resolve(accessor)
            if not (await element.status()).is_fresh:
                return False
            return await element.is_displayed() and await element.is_enabled()
        except _GONE:
            return False
    return _named("clickable", condition)


def present(accessor: Accessor) -> Condition:
    async def condition(_: "Browser") -> bool:
        try:
            await resolve(accessor)
        except NotFoundFailure:
            return False
        return True
    return _named("present", condition)


def enabled(accessor: Accessor) -> Condition:
    async def condition(_: "Browser") -> bool:
        try:
            return await (await resolve(accessor)).is_enabled()
        except _GONE:
            return False
    return _named("enabled", condition)


def does_not_exist(accessor: Accessor) -> Condition:
    """True once resolving the element, or probing it, reports it gone."""
    async def condition(_: "Browser") -> bool:
        try:
            element = await resolve(accessor)
            await element.ensure_attached()
        except _GONE:
            return True
        return False
    return _named("does_not_exist", condition)


def above(first: Accessor, second: Accessor) -> Condition:
    """`first` has a strictly higher z-index than `second`."""
    async def condition(_: "Browser") -> bool:
        try:
            z_first = await (await resolve(first)).get_z_index()
            z_second = await (await resolve(second)).get_z_index()
        except _GONE:
            return False
        return z_first > z_second
    return _named("above", condition)


def below(first: Accessor, second: Accessor) -> Condition:
    return _named("below", above(second, first))


def has_attributes(accessor: Accessor, *attributes: str, expected: bool = True) -> Condition:
    """Any of `attributes` is set (or, with expected=False, none is). Gone reads as not yet."""
    async def condition(_: "Browser") -> bool:
        try:
            return await (await resolve(accessor)).has_attribute(*attributes) is expected
        except _GONE:
            return False
    return _named("has_attributes" if expected else "lacks_attributes", condition)


def has_class(accessor: Accessor, *classes: str, expected: bool = True) -> Condition:
    async def condition(_: "Browser") -> bool:
        try:
            return await (await resolve(accessor)).has_class(*classes) is expected
        except _GONE:
            return False
    return _named("has_class" if expected else "lacks_class", condition)


def has_style(accessor: Accessor, *styles: str, expected: bool = True) -> Condition:
    async def condition(_: "Browser") -> bool:
        try:
            return await (await resolve(accessor)).has_style(*styles) is expected
        except _GONE:
            return False
    return _named("has_style" if expected else "lacks_style", condition)


# ---------- Session conditions ----------

def url_contains(value: str, expected: bool = True) -> Condition:
    async def condition(browser: "Browser") -> bool:
        return (value in await browser.current_url()) is expected
    return _named("url_contains" if expected else "url_lacks", condition)


def page_loaded(page_factory: PageFactory) -> Condition:
    """Delegates to the `load_condition()` of the page built by `page_factory`."""
    async def condition(browser: "Browser") -> bool:
        page = page_factory(browser)
        return await page.load_condition()(browser)
    return _named(f"page_loaded[{getattr(page_factory, '__name__', 'page')}]", condition)
