"""
uiharness
---------
Condition polling, validation and retry engine for Playwright-driven UI tests.

Consumers should import submodules directly, e.g.:
  from uiharness.core.browser import Browser, open_browser
  from uiharness.core import conditions
  from uiharness.core.retry import with_retry
"""

__version__ = "0.1.0"
