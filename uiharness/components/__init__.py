"""
Components package
------------------
Staleness-aware element handles and the widget types built on them.
"""

from .element import Accessor, Element, ElementState, Resolution, convert_selector
from .button import Button
from .text_input import TextInput
from .file_import import FileImport
from .grid_cell import GridCell
from .scroll_bar import ScrollBar, ScrollDirection

__all__ = [
    "Accessor",
    "Element",
    "ElementState",
    "Resolution",
    "convert_selector",
    "Button",
    "TextInput",
    "FileImport",
    "GridCell",
    "ScrollBar",
    "ScrollDirection",
]
