import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from uiharness.components import Button
from uiharness.core import conditions as cond
from uiharness.core.errors import OperationFailure, TimeoutFailure, ValidationFailure
from uiharness.pages.page import Page

from fakes import FakeDialog, FakeHandle


def later(delay_s, fn, *args):
    asyncio.get_running_loop().call_later(delay_s, fn, *args)


class SearchPage(Page):
    elements = {"query": "#q", "results": "//ul[@id='results']"}

    def load_condition(self):
        return cond.visible(self.accessor("query"))


@pytest.mark.asyncio
async def test_find_any_skips_missing_and_hidden(browser, page):
    page.put("#hidden", FakeHandle(visible=False))
    page.put("#shown", FakeHandle(text="hi"))
    found = await browser.find_any("#missing", "#hidden", "#shown")
    assert found is not None and found.selector == "#shown"
    assert await browser.find_any("#missing", "#hidden") is None


@pytest.mark.asyncio
async def test_wait_until_visible_sees_late_element(browser, page):
    later(0.05, page.put, "#toast", FakeHandle())
    await browser.wait_until_visible(browser.accessor("#toast"))


@pytest.mark.asyncio
async def test_wait_until_visible_times_out(browser):
    with pytest.raises(TimeoutFailure) as info:
        await browser.wait_until_visible(browser.accessor("#never"))
    assert info.value.timeout_ms == 300


@pytest.mark.asyncio
async def test_wait_until_disappears(browser, page):
    await browser.wait_until_disappears("#not-there")

    page.put("#spinner", FakeHandle())
    later(0.05, page.remove, "#spinner")
    await browser.wait_until_disappears("#spinner")


@pytest.mark.asyncio
async def test_wait_until_appears_and_disappears(browser, page):
    later(0.03, page.put, "#busy .spinner", FakeHandle())
    later(0.08, page.remove, "#busy .spinner")
    await browser.wait_until_appears_and_disappears(".spinner", parent="#busy")


@pytest.mark.asyncio
async def test_wait_until_stale(browser, page):
    handle = FakeHandle()
    page.put("#row", handle)
    element = await browser.find_element("#row")
    later(0.05, handle.detach)
    await browser.wait_until_stale(lambda: element)


@pytest.mark.asyncio
async def test_wait_until_clickable_returns_element(browser, page):
    handle = FakeHandle(enabled=False)
    page.put("#save", handle)
    later(0.05, setattr, handle, "enabled", True)
    element = await browser.wait_until_clickable(browser.accessor("#save", Button))
    assert isinstance(element, Button)


@pytest.mark.asyncio
async def test_wait_for_element_with_text(browser, page):
    later(0.03, page.put, '//*[text()="Saved"]', FakeHandle(text="Saved"))
    element = await browser.wait_for_element_with_text("Saved")
    assert await element.get_text() == "Saved"


@pytest.mark.asyncio
async def test_wait_for_any_element_visible(browser, page):
    later(0.03, page.put, "#error", FakeHandle())
    element = await browser.wait_for_any_element_visible("#success", "#error")
    assert element.selector == "#error"


@pytest.mark.asyncio
async def test_wait_for_element_on_top(browser, page):
    dialog = FakeHandle(z_index="1")
    page.put("#dialog", dialog)
    page.put("#shell", FakeHandle(z_index="10"))
    later(0.03, setattr, dialog, "z_index", "10")
    await browser.wait_for_element_on_top("#dialog", "#shell")


@pytest.mark.asyncio
async def test_wait_for_class_changes(browser, page):
    handle = FakeHandle(attrs={"class": "panel busy"})
    page.put("#panel", handle)
    later(0.03, handle.attrs.__setitem__, "class", "panel")
    await browser.wait_for_element_to_not_have_class("#panel", "busy")
    await browser.wait_for_element_to_have_class("#panel", "panel")


@pytest.mark.asyncio
async def test_wait_until_url_contains(browser, page):
    later(0.03, setattr, page, "url", "https://app.local/home")
    await browser.wait_until_url_contains("/home")
    await browser.wait_until_url_not_contains("/login")
    assert await browser.current_url() == "https://app.local/home"


@pytest.mark.asyncio
async def test_wait_until_page_loaded_returns_page_object(browser, page):
    later(0.03, page.put, "#q", FakeHandle())
    search = await browser.wait_until_page_loaded(SearchPage)
    assert isinstance(search, SearchPage)
    assert await search.is_visible() is True


@pytest.mark.asyncio
async def test_wait_until_any_page_loaded(browser, page):
    class ResultsPage(SearchPage):
        def load_condition(self):
            return cond.visible(self.accessor("results"))

    page.put("//ul[@id='results']", FakeHandle())
    await browser.wait_until_any_page_loaded(SearchPage, ResultsPage)


def test_page_unknown_element_name(browser):
    with pytest.raises(KeyError, match="declares no element named 'nope'"):
        SearchPage(browser).accessor("nope")


@pytest.mark.asyncio
async def test_page_element_and_type(browser, page):
    page.put("#q", FakeHandle(text="query"))
    search = SearchPage(browser)
    assert await (await search.element("query")).get_text() == "query"
    await search.type("cats")
    assert page.keyboard.typed == ["cats"]


@pytest.mark.asyncio
async def test_registered_validator_fails_waits(browser, page):
    page.put("#error-banner", FakeHandle())

    async def no_error_banner():
        return not await browser.exists("#error-banner")

    browser.register_validator(no_error_banner)
    assert len(browser.handlers) == 1
    with pytest.raises(ValidationFailure, match="no_error_banner"):
        await browser.wait_until_visible(browser.accessor("#never"))


@pytest.mark.asyncio
async def test_validated_operation(browser):
    calls = []
    browser.register_validator(lambda: calls.append("validated"))

    async def submit(value):
        calls.append(value)
        return value * 2

    assert await browser.validated(submit)(21) == 42
    assert calls == [21, "validated"]


@pytest.mark.asyncio
async def test_navigate_accepts_pending_dialog(browser, page):
    dialog = FakeDialog()
    page.fire("dialog", dialog)
    assert browser.has_alert() is True
    await browser.navigate("https://app.local/")
    assert dialog.accepted is True
    assert browser.has_alert() is False
    assert page.visited == ["https://app.local/"]


@pytest.mark.asyncio
async def test_dialog_queue_accept_and_dismiss(browser, page):
    first, second = FakeDialog(), FakeDialog("Sure?")
    page.fire("dialog", first)
    page.fire("dialog", second)
    await browser.accept_alert()
    await browser.dismiss_alert()
    assert first.accepted and second.dismissed
    assert not browser.has_alert()


@pytest.mark.asyncio
async def test_screenshot_is_retried(browser, page):
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise OperationFailure("screenshot failed")
        return b"png"

    page.screenshot = flaky
    assert await browser.screenshot() == b"png"
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_tabs_and_quit(browser, page):
    closed = []

    async def closer():
        closed.append(True)

    browser.on_quit(closer)
    await browser.new_tab("https://app.local/other")
    assert browser.page is not page
    assert browser.page.visited == ["https://app.local/other"]

    await browser.close()
    assert browser.page is page

    await browser.quit()
    await browser.quit()
    assert page.context.closed is True
    assert closed == [True]
    assert browser.valid is False


@pytest.mark.asyncio
async def test_dialog_raised_during_navigation_is_accepted(browser, page):
    dialog = FakeDialog("Unsaved changes")
    page.dialogs_on_goto.append(dialog)
    await browser.navigate("https://app.local/next")
    assert dialog.accepted is True
    assert browser.has_alert() is False


@pytest.mark.asyncio
async def test_failed_dialog_accept_surfaces_from_navigate(browser, page):
    page.dialogs_on_goto.append(FakeDialog(accept_error=PlaywrightError("No dialog is showing")))
    with pytest.raises(OperationFailure, match="No dialog is showing"):
        await browser.navigate("https://app.local/next")

    page.dialogs_on_goto[:] = [FakeDialog(accept_error=RuntimeError("accept failed"))]
    with pytest.raises(RuntimeError, match="accept failed"):
        await browser.refresh()
    assert browser._dialog_tasks == set()


@pytest.mark.asyncio
async def test_wait_until_disappears_joins_parent_as_css_descendant(browser, page):
    page.put(".spinner", FakeHandle())
    page.put("#busy .spinner", FakeHandle())
    later(0.03, page.remove, "#busy .spinner")
    # the unscoped spinner stays visible; only the one under #busy is waited on
    await browser.wait_until_disappears(".spinner", parent="#busy")
    assert await browser.exists(".spinner") is True
