# uiharness/core/errors.py
from __future__ import annotations

"""Failure taxonomy
-------------------
Every failure raised by the harness is a HarnessError subclass so callers can
pattern-match on the kind. Playwright errors are translated at the element
boundary by `translate_error`.
"""

from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


__all__ = [
    "HarnessError",
    "NotFoundFailure",
    "StaleReferenceFailure",
    "TimeoutFailure",
    "ValidationFailure",
    "OperationFailure",
    "translate_error",
    "is_stale_failure",
    "is_not_found_failure",
    "is_gone_failure",
]


class HarnessError(RuntimeError):
    """Base class for all harness failures."""


class NotFoundFailure(HarnessError):
    """A locator matched nothing."""

    def __init__(self, selector: str, message: Optional[str] = None) -> None:
        self.selector = selector
        super().__init__(message or f"No element matches selector {selector!r}")


class StaleReferenceFailure(HarnessError):
    """An element reference is no longer attached to the document."""

    def __init__(self, selector: Optional[str] = None, message: Optional[str] = None) -> None:
        self.selector = selector
        where = f" ({selector!r})" if selector else ""
        super().__init__(message or f"Element reference is stale{where}")


class TimeoutFailure(HarnessError):
    """The poll budget was exhausted without any condition becoming true."""

    def __init__(self, timeout_ms: Optional[int] = None, description: Optional[str] = None) -> None:
        self.timeout_ms = timeout_ms
        desc = f" ({description})" if description else ""
        if timeout_ms is None:
            super().__init__(f"Driver operation timed out{desc}")
        else:
            super().__init__(f"Wait timed out after {timeout_ms} ms{desc}")


class ValidationFailure(HarnessError):
    """A validator detected an unexpected state on the page."""


class OperationFailure(HarnessError):
    """Generic driver failure (click obstructed, navigation error, ...)."""


# Playwright reports detached / disposed handles through its generic Error
_STALE_MARKERS = (
    "not attached to the dom",
    "element is detached",
    "node is detached",
    "jshandle is disposed",
    "elementhandle is disposed",
    "execution context was destroyed",
    "cannot find context with specified id",
)


def translate_error(exc: BaseException, selector: Optional[str] = None) -> BaseException:
    """
    Map a driver exception onto the harness taxonomy.

    HarnessErrors and non-Playwright exceptions are returned untouched; the
    Playwright error is kept as ``__cause__`` of the translated failure.
    """
    if isinstance(exc, HarnessError) or not isinstance(exc, PlaywrightError):
        return exc
    if isinstance(exc, PlaywrightTimeoutError):
        translated: HarnessError = TimeoutFailure(None, exc.message)
    else:
        text = (exc.message or str(exc)).lower()
        if any(marker in text for marker in _STALE_MARKERS):
            translated = StaleReferenceFailure(selector, exc.message)
        else:
            translated = OperationFailure(exc.message)
    translated.__cause__ = exc
    return translated


# ---------- Retry / wait predicates ----------

def is_stale_failure(exc: BaseException) -> bool:
    return isinstance(exc, StaleReferenceFailure)


def is_not_found_failure(exc: BaseException) -> bool:
    return isinstance(exc, NotFoundFailure)


def is_gone_failure(exc: BaseException) -> bool:
    """True for the 'element no longer exists' kinds (not found or stale)."""
    return isinstance(exc, (NotFoundFailure, StaleReferenceFailure))
