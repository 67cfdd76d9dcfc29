# uiharness/components/grid_cell.py
from __future__ import annotations

from uiharness.components.element import Element


class GridCell(Element):
    async def fill_cell(self, text: str) -> None:
        """Click into the cell, type `text` and commit it with Enter."""
        await self.click()
        keyboard = self.page.keyboard
        await self._driver(keyboard.type, text)
        await self._driver(keyboard.press, "Enter")
