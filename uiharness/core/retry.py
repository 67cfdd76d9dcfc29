# uiharness/core/retry.py
from __future__ import annotations

"""Retry orchestrator
---------------------
`with_retry` wraps any fallible operation (sync or async) and returns an async
operation with the same signature that re-invokes it on failures matching a
predicate. No delay between attempts; the last failure is re-raised as-is.
"""

import functools
import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar, ParamSpec, Union

from uiharness.utils.logger import get_logger

P = ParamSpec("P")
T = TypeVar("T")

ErrorPredicate = Callable[[BaseException], bool]

DEFAULT_MAX_ATTEMPTS = 5

log = get_logger(__name__)


def always(_: BaseException) -> bool:
    return True


@dataclass(frozen=True)
class RetryPolicy:
    """Which failures are retried and how many times after the first attempt."""
    predicate: ErrorPredicate = field(default=always)
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")

    def wrap(self, operation: Callable[P, Union[T, Awaitable[T]]]) -> Callable[P, Awaitable[T]]:
        return with_retry(operation, self.predicate, self.max_attempts)


def with_retry(
    operation: Callable[P, Union[T, Awaitable[T]]],
    predicate: ErrorPredicate = always,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> Callable[P, Awaitable[T]]:
    """
    Return `operation` wrapped so that failures for which `predicate(error)` is
    true are retried up to `max_attempts` times.

    With a predicate that always matches, the operation runs 1 + max_attempts
    times. A failure the predicate rejects, or the failure of the final attempt,
    propagates unchanged (same instance, no wrapping).
    """
    if max_attempts < 0:
        raise ValueError("max_attempts must be >= 0")
    name = getattr(operation, "__qualname__", repr(operation))

    @functools.wraps(operation)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        remaining = max_attempts
        while True:
            try:
                result = operation(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result
                return result  # type: ignore[return-value]
            except Exception as exc:
                if remaining <= 0 or not predicate(exc):
                    raise
                remaining -= 1
                log.debug(f"Retrying {name} ({max_attempts - remaining}/{max_attempts}) after {exc!r}")

    return wrapper


async def call_with_retry(
    operation: Callable[[], Union[Any, Awaitable[Any]]],
    predicate: ErrorPredicate = always,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> Any:
    """Run a zero-argument operation once through `with_retry`."""
    return await with_retry(operation, predicate, max_attempts)()
