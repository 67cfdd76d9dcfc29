# uiharness/pages/page.py
from __future__ import annotations

"""Page objects
---------------
A Page represents a page (or a region of one). It lists its elements
explicitly in `elements` (name -> selector) and exposes lazily-resolved
accessors for them, and it defines when it counts as loaded through
`load_condition()`.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Awaitable, Callable, ClassVar, Mapping, Optional, Type

from uiharness.components.element import Element

if TYPE_CHECKING:
    from uiharness.core.browser import Browser
    from uiharness.core.conditions import Condition


class Page(ABC):
    """Base class for page objects."""

    # name -> selector ('//' marks XPath, anything else is CSS)
    elements: ClassVar[Mapping[str, str]] = {}

    def __init__(self, browser: "Browser") -> None:
        self.browser = browser

    @abstractmethod
    def load_condition(self) -> "Condition":
        """Condition that is true once this page is loaded enough to use."""

    async def is_visible(self) -> bool:
        """Evaluate the load condition once."""
        return await self.load_condition()(self.browser)

    def selector(self, name: str) -> str:
        try:
            return self.elements[name]
        except KeyError:
            raise KeyError(f"{type(self).__name__} declares no element named {name!r}") from None

    def accessor(self, name: str, component: Optional[Type[Element]] = None) -> Callable[[], Awaitable[Element]]:
        """Zero-argument callable locating element `name` afresh on every call."""
        selector = self.selector(name)

        def locate() -> Awaitable[Element]:
            return self.browser.find_element(selector, component)

        locate.__name__ = name
        return locate

    async def element(self, name: str, component: Optional[Type[Element]] = None) -> Element:
        return await self.accessor(name, component)()

    async def type(self, text: str) -> None:
        """Type into whatever element currently has focus."""
        await self.browser.type_to_focused_element(text)

    async def refresh(self) -> None:
        await self.browser.refresh()
