# uiharness/utils/logger.py
from __future__ import annotations

"""Logging
----------
Root logging is configured once from Settings: a rich console handler plus an
optional rotating JSON-lines file. Context (run id, browser session, wait
attempt) travels with every record in `record.context`:

- `bind()` / `unbind()` set run-wide context for the current task (contextvars,
  so concurrent sessions on one loop do not see each other's bindings);
- `log_with_context()` scopes context to one adapter (e.g. a Browser session);
- per-call `extra={...}` adds fields to one record (e.g. the poll attempt).
"""

import json
import logging
import threading
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Mapping, MutableMapping, Optional, Tuple

from rich.console import Console
from rich.logging import RichHandler

from uiharness.utils.config import get_settings, LogLevel


__all__ = [
    "get_logger",
    "set_log_level",
    "bind",
    "unbind",
    "log_with_context",
    "HarnessAdapter",
]


_config_lock = threading.Lock()
_configured = False
_bound: ContextVar[Mapping[str, Any]] = ContextVar("uiharness_log_context", default={})

# fields lifted to the top level of a JSON line, in this order
_PROMOTED = ("run_id", "session", "wait", "attempt", "elapsed_ms")


class HarnessAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that merges three layers into `record.context`, later wins:
    task-bound context, the adapter's own context, the call's `extra`.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        context: Dict[str, Any] = dict(_bound.get())
        context.update(self.extra or {})
        context.update(kwargs.pop("extra", None) or {})
        kwargs["extra"] = {"context": context}
        return msg, kwargs

    def bound(self, **kwargs: Any) -> "HarnessAdapter":
        merged = dict(self.extra or {})
        merged.update(kwargs)
        return HarnessAdapter(self.logger, merged)


class _SessionTag(logging.Filter):
    """Prefix console lines with the session name when one is attached."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = getattr(record, "context", None) or {}
        session = context.get("session")
        record.session_tag = f"[{session}] " if session else ""
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; context fields such as `session` and `attempt` become top-level keys."""

    default_time_format = "%Y-%m-%dT%H:%M:%S"

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(self.default_time_format),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        context = dict(getattr(record, "context", None) or {})
        for key in _PROMOTED:
            if key in context:
                payload[key] = context.pop(key)
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


_LEVEL_MAP = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
}


def _ensure_configured() -> None:
    global _configured
    if _configured:
        return

    with _config_lock:
        if _configured:
            return

        settings = get_settings()
        level = _LEVEL_MAP.get(settings.LOG_LEVEL, logging.INFO)

        root = logging.getLogger()
        root.setLevel(level)
        for h in list(root.handlers):
            root.removeHandler(h)

        console = Console(stderr=True, color_system="auto" if settings.COLORIZED_OUTPUT else None)
        rich_handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            markup=False,
            omit_repeated_times=False,
        )
        rich_handler.addFilter(_SessionTag())
        rich_handler.setFormatter(logging.Formatter("%(session_tag)s%(message)s"))
        rich_handler.setLevel(level)
        root.addHandler(rich_handler)

        if settings.LOG_TO_FILE:
            settings.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=str(settings.LOG_FILE),
                maxBytes=5 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
                delay=True,
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(JsonFormatter())
            root.addHandler(file_handler)

        # Playwright's own loggers are chatty while polling
        for n in ("asyncio", "playwright"):
            logging.getLogger(n).setLevel(max(level, logging.WARNING))

        _configured = True


def get_logger(name: Optional[str] = None) -> HarnessAdapter:
    """Configured logger whose records carry the bound context."""
    _ensure_configured()
    return HarnessAdapter(logging.getLogger(name if name else "uiharness"), {})


def set_log_level(level: LogLevel | str) -> None:
    """Adjust the log level at runtime (root logger and its handlers)."""
    _ensure_configured()
    lvl = level if isinstance(level, str) else level.value
    py_level = getattr(logging, lvl.upper(), logging.INFO)
    logging.getLogger().setLevel(py_level)
    for h in logging.getLogger().handlers:
        h.setLevel(py_level)


def bind(**kwargs: Any) -> None:
    """Bind context (e.g. run_id="20261019T120000Z") for the current task and the tasks it starts."""
    merged = dict(_bound.get())
    merged.update(kwargs)
    _bound.set(merged)


def unbind(*keys: str) -> None:
    _bound.set({k: v for k, v in _bound.get().items() if k not in keys})


def bound_context() -> Dict[str, Any]:
    return dict(_bound.get())


def log_with_context(logger: logging.LoggerAdapter, **kwargs: Any) -> HarnessAdapter:
    """
    Adapter adding `kwargs` to every record it emits:
        log = log_with_context(get_logger(__name__), session="chromium-1")
    """
    if isinstance(logger, HarnessAdapter):
        return logger.bound(**kwargs)
    return HarnessAdapter(logger.logger, dict(kwargs))
