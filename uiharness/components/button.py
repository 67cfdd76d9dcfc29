# uiharness/components/button.py
from __future__ import annotations

from uiharness.components.element import Element


class Button(Element):
    async def is_disabled(self) -> bool:
        # <button disabled> reports "" for the attribute, absent means enabled
        return await self.get_attribute("disabled") is not None or not await self.is_enabled()
