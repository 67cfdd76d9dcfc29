# uiharness/components/file_import.py
from __future__ import annotations

import ntpath
import posixpath
import sys

from uiharness.components.element import Element


def remote_path(file_name: str, windows: bool = sys.platform == "win32") -> str:
    """
    Path of a file on a network share, given as "host/share/dir/file".
    UNC (\\\\host\\share\\...) on Windows, /net/host/share/... elsewhere.
    """
    parts = [p for p in file_name.split("/") if p]
    if windows:
        return "\\\\" + ntpath.join(*parts)
    return "/net/" + posixpath.join(*parts)


class FileImport(Element):
    """An <input type="file">."""

    async def import_local_file(self, path: str) -> None:
        """Select a local file; expects an absolute path."""
        await self._driver(self.handle.set_input_files, path)

    async def import_remote_file(self, file_name: str) -> str:
        """Select a file from a network share (forward-slash separated). Returns the path used."""
        path = remote_path(file_name)
        await self._driver(self.handle.set_input_files, path)
        return path
