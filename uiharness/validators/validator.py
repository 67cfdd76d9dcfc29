# uiharness/validators/validator.py
from __future__ import annotations

"""Validators
-------------
Checks run on every poll attempt of every wait (and after operations wrapped by
`with_validation`) to surface unexpected error states early. A validator
signals a problem by raising; nothing it raises is swallowed.
"""

import inspect
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Iterator, List, Optional, Union

from uiharness.core.errors import ValidationFailure
from uiharness.utils.logger import get_logger

if TYPE_CHECKING:
    from uiharness.core.browser import Browser


log = get_logger(__name__)


class Validator(ABC):
    """Base class for stateful validators that need the browser session."""

    def __init__(self, browser: Optional["Browser"] = None) -> None:
        self.browser = browser

    @abstractmethod
    async def validate(self, stack: Optional[str]) -> None:
        """Raise if the page shows an unexpected state. `stack` is the wait's call site."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


class FunctionValidator(Validator):
    """
    Adapts a plain callable (sync or async, zero-argument) into a Validator.
    A callable returning exactly ``False`` fails validation; any other return
    value passes.
    """

    def __init__(self, fn: Callable[[], Any], browser: Optional["Browser"] = None) -> None:
        super().__init__(browser)
        self.fn = fn

    async def validate(self, stack: Optional[str]) -> None:
        result = self.fn()
        if inspect.isawaitable(result):
            result = await result
        if result is False:
            name = getattr(self.fn, "__name__", repr(self.fn))
            raise ValidationFailure(f"Validator {name} failed" + (f"\nWait called from:\n{stack}" if stack else ""))

    def __repr__(self) -> str:
        return f"<FunctionValidator {getattr(self.fn, '__name__', self.fn)!r}>"


Handler = Union[Validator, Callable[[], Any]]


class ValidatorRegistry:
    """Append-only list of validators owned by one browser session."""

    def __init__(self, browser: Optional["Browser"] = None) -> None:
        self._browser = browser
        self._validators: List[Validator] = []

    def register(self, handler: Handler) -> Validator:
        if isinstance(handler, Validator):
            validator = handler
        elif hasattr(handler, "validate"):
            validator = handler  # type: ignore[assignment]
        elif callable(handler):
            validator = FunctionValidator(handler, self._browser)
        else:
            raise TypeError(f"Cannot register {handler!r} as a validator")
        self._validators.append(validator)
        log.debug(f"Registered validator {validator!r} ({len(self._validators)} total)")
        return validator

    async def run_all(self, stack: Optional[str] = None) -> None:
        # iterate over a snapshot: a validator may register another one
        for validator in list(self._validators):
            await validator.validate(stack)

    def __iter__(self) -> Iterator[Validator]:
        return iter(list(self._validators))

    def __len__(self) -> int:
        return len(self._validators)
