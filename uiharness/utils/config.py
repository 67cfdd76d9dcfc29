# uiharness/utils/config.py
from __future__ import annotations

import functools
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------- Enums ----------

class BrowserType(str, Enum):
    chromium = "chromium"
    firefox = "firefox"
    webkit = "webkit"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ---------- Settings ----------

class Settings(BaseSettings):
    """
    Central configuration for the UI test harness.

    Values load in this order of precedence:
      1) Environment variables
      2) .env file in project root
      3) Defaults below
    """

    # ---- Browser configuration ----
    HEADLESS: bool = Field(default=True, description="Run the browser headless")
    BROWSER_TYPE: BrowserType = Field(default=BrowserType.chromium, description="Playwright browser")
    MAXIMIZED: bool = Field(default=False, description="Start maximized instead of a fixed viewport")
    VIEWPORT_WIDTH: int = Field(default=1190, ge=320, le=7680)
    VIEWPORT_HEIGHT: int = Field(default=1904, ge=320, le=4320)
    SLOW_MO: int = Field(default=0, ge=0, description="Slow down actions (ms) for debugging")
    USER_AGENT: Optional[str] = Field(default=None)

    # ---- Waits ----
    WAIT_TIMEOUT_MS: int = Field(default=30000, ge=0, description="Budget of a single wait_for/wait_for_any call")
    POLL_INTERVAL_MS: int = Field(default=100, ge=1, description="Sleep between two poll attempts")
    LOAD_TIME_MS: int = Field(default=0, ge=0, description="Settle delay applied by with_load_delay")

    # ---- Retry ----
    RETRY_MAX_ATTEMPTS: int = Field(default=5, ge=0, description="Retries after the first attempt")

    # ---- Elements ----
    DISABLED_CLASS: str = Field(default="sapMInputBaseDisabled", description="CSS class marking a disabled widget")

    # ---- Logging ----
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO)
    LOG_TO_FILE: bool = Field(default=False)
    LOG_FILE: Path = Field(default=Path("./uiharness.log"))
    COLORIZED_OUTPUT: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore unknown envs to keep things flexible
    )

    @field_validator("LOG_FILE", mode="before")
    @classmethod
    def _coerce_to_path(cls, v):
        if isinstance(v, Path):
            return v
        return Path(str(v)) if v is not None else v

    @field_validator("LOG_FILE", mode="after")
    @classmethod
    def _absolutize_log_file(cls, v: Path):
        return v if v.is_absolute() else Path.cwd() / v

    @field_validator("DISABLED_CLASS")
    @classmethod
    def _strip_class(cls, v: str) -> str:
        return v.strip().lstrip(".")

    # Convenience: Playwright launch options dict
    def playwright_launch_kwargs(self) -> dict:
        kwargs = {
            "headless": self.HEADLESS,
            "slow_mo": self.SLOW_MO,
        }
        if self.MAXIMIZED and self.BROWSER_TYPE == BrowserType.chromium:
            kwargs["args"] = ["--start-maximized"]
        return kwargs

    # Convenience: Playwright new_context kwargs
    def playwright_context_kwargs(self) -> dict:
        if self.MAXIMIZED:
            ctx: dict = {"no_viewport": True}
        else:
            ctx = {"viewport": {"width": self.VIEWPORT_WIDTH, "height": self.VIEWPORT_HEIGHT}}
        if self.USER_AGENT:
            ctx["user_agent"] = self.USER_AGENT
        return ctx


# --------- Public accessor (memoized) ---------

@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache settings once per process.
    Call `get_settings.cache_clear()` if you need to reload after changing env.
    """
    return Settings()
