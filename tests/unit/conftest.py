import pytest

from uiharness.core.browser import Browser
from uiharness.utils.config import Settings

from fakes import FakePage


@pytest.fixture
def settings() -> Settings:
    return Settings(WAIT_TIMEOUT_MS=300, POLL_INTERVAL_MS=10, RETRY_MAX_ATTEMPTS=5)


@pytest.fixture
def page() -> FakePage:
    return FakePage()


@pytest.fixture
def browser(page: FakePage, settings: Settings) -> Browser:
    return Browser(page, settings=settings, name="test")  # type: ignore[arg-type]
