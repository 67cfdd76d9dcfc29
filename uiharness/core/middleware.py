# uiharness/core/middleware.py
from __future__ import annotations

"""Operation wrappers
---------------------
Cross-cutting behavior attached to page/browser operations explicitly: each
wrapper takes an operation and returns an equivalent async operation with the
extra behavior. Combine them with `compose` (first wrapper is innermost).
"""

import functools
import inspect
import traceback
from typing import Any, Awaitable, Callable, Optional, TypeVar, ParamSpec, Union

from uiharness.utils.config import get_settings
from uiharness.utils.logger import get_logger
from uiharness.utils.timing import async_sleep_ms
from uiharness.validators.validator import ValidatorRegistry

P = ParamSpec("P")
T = TypeVar("T")

Operation = Callable[P, Union[T, Awaitable[T]]]
Wrapper = Callable[[Callable[..., Any]], Callable[..., Awaitable[Any]]]


async def _invoke(operation: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    result = operation(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def with_validation(operation: Operation, validators: ValidatorRegistry) -> Callable[P, Awaitable[T]]:
    """Run every registered validator after `operation` succeeds, then return its result."""
    @functools.wraps(operation)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        stack = "".join(traceback.format_stack()[:-1])
        result = await _invoke(operation, *args, **kwargs)
        await validators.run_all(stack)
        return result
    return wrapper


def with_logging(operation: Operation, owner: Optional[str] = None) -> Callable[P, Awaitable[T]]:
    """Log 'Attempting' / 'Finished' around `operation`."""
    name = getattr(operation, "__name__", repr(operation))
    prefix = f"[{owner}] " if owner else ""
    log = get_logger(__name__)

    @functools.wraps(operation)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        log.info(f"{prefix}Attempting: {name}")
        result = await _invoke(operation, *args, **kwargs)
        log.info(f"{prefix}Finished: {name}")
        return result
    return wrapper


def with_load_delay(operation: Operation, delay_ms: Optional[int] = None) -> Callable[P, Awaitable[T]]:
    """Sleep `delay_ms` (default LOAD_TIME_MS) after `operation` so the UI can settle before the next step."""
    pause = get_settings().LOAD_TIME_MS if delay_ms is None else delay_ms

    @functools.wraps(operation)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        result = await _invoke(operation, *args, **kwargs)
        await async_sleep_ms(pause)
        return result
    return wrapper


def compose(operation: Callable[..., Any], *wrappers: Wrapper) -> Callable[..., Awaitable[Any]]:
    """
    Apply `wrappers` in order, e.g.
        compose(page.submit,
                lambda op: with_retry(op, is_stale_failure),
                lambda op: with_validation(op, browser.validators))
    retries the submit and validates once after it finally succeeded.
    """
    wrapped: Callable[..., Any] = operation
    for wrap in wrappers:
        wrapped = wrap(wrapped)
    if inspect.iscoroutinefunction(wrapped):
        return wrapped
    inner = wrapped

    @functools.wraps(operation)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        return await _invoke(inner, *args, **kwargs)
    return wrapper
