# uiharness/utils/timing.py
from __future__ import annotations

import asyncio
import functools
import inspect
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar, ParamSpec, Union

from uiharness.core.errors import TimeoutFailure
from uiharness.utils.logger import get_logger

P = ParamSpec("P")
T = TypeVar("T")

Predicate = Callable[[], Union[Any, Awaitable[Any]]]


# ---------------- Monotonic time helpers ----------------

def now_ms() -> int:
    """Monotonic time in milliseconds."""
    return time.monotonic_ns() // 1_000_000


async def async_sleep_ms(ms: int) -> None:
    """Async sleep for `ms` milliseconds."""
    if ms <= 0:
        return
    await asyncio.sleep(ms / 1000.0)


# ---------------- Stopwatch ----------------

@dataclass
class Stopwatch:
    """Simple stopwatch usable as a context manager."""
    start_ms: Optional[int] = None

    def start(self) -> "Stopwatch":
        self.start_ms = now_ms()
        return self

    def elapsed_ms(self) -> int:
        if self.start_ms is None:
            return 0
        return max(0, now_ms() - self.start_ms)

    def __enter__(self) -> "Stopwatch":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        return None


# ---------------- poll_until (polling primitive) ----------------

async def poll_until(
    predicate: Predicate,
    timeout_ms: int,
    interval_ms: int = 100,
    description: Optional[str] = None,
) -> Any:
    """
    Call `predicate()` until it returns a truthy value or `timeout_ms` elapses.
    `predicate` may be sync or async; exceptions it raises propagate.

    The predicate is always invoked at least once. TimeoutFailure is raised
    only once the full budget has elapsed, never earlier.
    """
    log = get_logger(__name__)
    budget = max(0, timeout_ms)
    deadline = time.monotonic() + budget / 1000.0
    attempts = 0

    while True:
        attempts += 1
        result = predicate()
        if inspect.isawaitable(result):
            result = await result
        if result:
            return result

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            log.debug(f"Gave up after {attempts} attempt(s){(' - ' + description) if description else ''}")
            raise TimeoutFailure(timeout_ms, description)
        await asyncio.sleep(min(max(1, interval_ms) / 1000.0, remaining))

        if interval_ms >= 500 and attempts % 10 == 0:
            log.debug(f"Waiting... {int(max(0.0, deadline - time.monotonic()) * 1000)} ms left"
                      f"{(' - ' + description) if description else ''}")


# ---------------- measure decorator ----------------

def measure(label: str = "", level: str = "DEBUG") -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator to log the execution time of a function or coroutine function.
    Example:
        @measure("wait for dialog")
        async def wait_for_dialog(...): ...
    """
    log = get_logger(__name__)
    log_fn = getattr(log, level.lower(), log.debug)

    def _report(name: str, ms: int) -> None:
        human = f"{ms} ms" if ms < 1000 else f"{ms/1000:.3f} s"
        log_fn(f"{name} took {human}")

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        name = label or func.__name__

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs):
                with Stopwatch() as sw:
                    try:
                        return await func(*args, **kwargs)
                    finally:
                        _report(name, sw.elapsed_ms())
            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with Stopwatch() as sw:
                try:
                    return func(*args, **kwargs)
                finally:
                    _report(name, sw.elapsed_ms())
        return wrapper
    return decorator
