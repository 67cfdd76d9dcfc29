from pathlib import Path

import pytest
from pydantic import ValidationError

from uiharness.utils.config import BrowserType, Settings


def test_defaults():
    s = Settings(_env_file=None)
    assert s.WAIT_TIMEOUT_MS == 30000
    assert s.POLL_INTERVAL_MS == 100
    assert s.RETRY_MAX_ATTEMPTS == 5
    assert s.DISABLED_CLASS == "sapMInputBaseDisabled"
    assert s.BROWSER_TYPE is BrowserType.chromium


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("WAIT_TIMEOUT_MS", "1500")
    monkeypatch.setenv("BROWSER_TYPE", "firefox")
    s = Settings(_env_file=None)
    assert s.WAIT_TIMEOUT_MS == 1500
    assert s.BROWSER_TYPE is BrowserType.firefox


def test_rejects_bad_values():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, POLL_INTERVAL_MS=0)
    with pytest.raises(ValidationError):
        Settings(_env_file=None, RETRY_MAX_ATTEMPTS=-1)


def test_log_file_is_absolutized():
    s = Settings(_env_file=None, LOG_FILE="logs/run.log")
    assert s.LOG_FILE.is_absolute()
    assert s.LOG_FILE.name == "run.log"


def test_playwright_kwargs():
    s = Settings(_env_file=None, HEADLESS=False, SLOW_MO=50, VIEWPORT_WIDTH=800, VIEWPORT_HEIGHT=600)
    assert s.playwright_launch_kwargs()["headless"] is False
    assert s.playwright_launch_kwargs()["slow_mo"] == 50
    assert s.playwright_context_kwargs()["viewport"] == {"width": 800, "height": 600}
    assert Settings(_env_file=None, MAXIMIZED=True).playwright_context_kwargs()["no_viewport"] is True
