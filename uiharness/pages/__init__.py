"""
Pages package
-------------
Base class for page objects consumed by `page_loaded` and the browser's
page-load waits.
"""

from .page import Page

__all__ = ["Page"]
