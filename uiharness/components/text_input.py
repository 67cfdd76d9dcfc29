# uiharness/components/text_input.py
from __future__ import annotations

from uiharness.components.element import Element
from uiharness.core.errors import HarnessError, is_stale_failure
from uiharness.core.retry import with_retry
from uiharness.utils.logger import get_logger

log = get_logger(__name__)


class TextInput(Element):
    """Text field whose typing survives the node being re-rendered mid-edit."""

    async def _type_once(self, text: str) -> None:
        try:
            await self.refetch()
            await self.clear()
        except HarnessError as exc:
            log.debug(f"Could not clear {self.selector!r} before typing: {exc!r}")
        await self._driver(self.handle.type, text)

    async def type_text(self, text: str) -> None:
        """Clear the field and type `text`; stale failures are retried."""
        await with_retry(self._type_once, is_stale_failure, self.settings.RETRY_MAX_ATTEMPTS)(text)

    async def _has_value(self, value: str) -> bool:
        if await self.get_text() == value:
            return True
        return await self._driver(self.handle.input_value) == value

    async def fill(self, value: str) -> bool:
        """
        Fill the field with `value`.
        Returns False when it already held that value, True when it was changed.
        """
        if await self._has_value(value):
            return False
        await self.click()
        await self.type_text(value)
        return True
