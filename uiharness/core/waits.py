# uiharness/core/waits.py
from __future__ import annotations

"""Wait engine
--------------
Races a list of conditions against a timeout. Each poll attempt evaluates the
conditions in the order given (first READY wins), then runs every registered
validator exactly once. Whatever a condition raises only means "not yet" for
that attempt; a validator error or the timeout is all that ends the wait early.
"""

import traceback
from typing import Any, Awaitable, Callable, Optional

from uiharness.core.conditions import Condition, Outcome, evaluate
from uiharness.core.errors import TimeoutFailure
from uiharness.utils.config import Settings, get_settings
from uiharness.utils.logger import get_logger, log_with_context
from uiharness.utils.timing import Stopwatch, poll_until
from uiharness.validators.validator import ValidatorRegistry

# (predicate, timeout_ms, interval_ms, description) -> awaitable, raising TimeoutFailure when exhausted
PollPrimitive = Callable[..., Awaitable[Any]]


def _call_site(skip: int = 2) -> str:
    """Formatted stack of the code that asked for the wait, for validator diagnostics."""
    return "".join(traceback.format_stack()[:-skip])


class WaitEngine:
    """Polls conditions for one browser session."""

    def __init__(
        self,
        context: Any,
        validators: ValidatorRegistry,
        *,
        timeout_ms: Optional[int] = None,
        interval_ms: Optional[int] = None,
        poll: PollPrimitive = poll_until,
        settings: Optional[Settings] = None,
    ) -> None:
        s = settings or get_settings()
        self.context = context
        self.validators = validators
        self.timeout_ms = s.WAIT_TIMEOUT_MS if timeout_ms is None else timeout_ms
        self.interval_ms = s.POLL_INTERVAL_MS if interval_ms is None else interval_ms
        self.poll = poll
        session = getattr(context, "name", None)
        self.log = log_with_context(get_logger(__name__), session=session) if session else get_logger(__name__)

    async def _attempt(self, conditions: tuple[Condition, ...], stack: str, attempt: int = 1) -> bool:
        """One poll attempt. True when a condition is ready."""
        ready = False
        for condition in conditions:
            outcome = await evaluate(condition, self.context)
            if outcome.is_ready:
                ready = True
                break
            if outcome.error is not None:
                self._suppressed(condition, outcome, attempt)
        await self.validators.run_all(stack)
        return ready

    def _suppressed(self, condition: Condition, outcome: Outcome, attempt: int) -> None:
        name = getattr(condition, "__name__", "condition")
        kind = "unexpected error" if outcome.is_unexpected else "element gone"
        self.log.debug(f"{name}: {kind} {outcome.error!r} suppressed, not ready yet", extra={"attempt": attempt})

    async def wait_for_any(self, *conditions: Condition, timeout_ms: Optional[int] = None) -> None:
        """
        Wait until any of `conditions` is true.

        Raises TimeoutFailure once the budget elapses, or whatever a validator
        raised. Errors raised by conditions never escape.
        """
        if not conditions:
            raise ValueError("wait_for_any needs at least one condition")
        budget = self.timeout_ms if timeout_ms is None else timeout_ms
        stack = _call_site()
        names = ", ".join(getattr(c, "__name__", "condition") for c in conditions)

        attempts = 0

        def attempt() -> Awaitable[bool]:
            nonlocal attempts
            attempts += 1
            return self._attempt(conditions, stack, attempts)

        with Stopwatch() as sw:
            try:
                await self.poll(
                    attempt,
                    budget,
                    self.interval_ms,
                    f"{len(conditions)} condition(s)",
                )
            except TimeoutFailure:
                self.log.warning(
                    f"Timed out after {sw.elapsed_ms()} ms waiting for any of [{names}]",
                    extra={"wait": names, "attempt": attempts, "elapsed_ms": sw.elapsed_ms()},
                )
                raise
        self.log.debug(
            f"Wait for any of [{names}] satisfied after {sw.elapsed_ms()} ms",
            extra={"wait": names, "attempt": attempts, "elapsed_ms": sw.elapsed_ms()},
        )

    async def wait_for(self, condition: Condition, timeout_ms: Optional[int] = None) -> None:
        await self.wait_for_any(condition, timeout_ms=timeout_ms)
