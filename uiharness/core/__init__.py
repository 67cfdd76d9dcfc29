"""
Core package for the UI test harness.
Lightweight package init to avoid import cycles.

Consumers should import submodules directly, e.g.:
  from uiharness.core.waits import WaitEngine
  from uiharness.core.conditions import visible, not_visible
  from uiharness.core.errors import NotFoundFailure, StaleReferenceFailure
"""

__all__: list[str] = []
