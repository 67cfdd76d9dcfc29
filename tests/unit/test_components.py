import pytest

from uiharness.components import FileImport, GridCell, ScrollBar, ScrollDirection
from uiharness.components.element import xpath_literal
from uiharness.components.file_import import remote_path

from fakes import FakeHandle


@pytest.mark.asyncio
async def test_corner_getters(browser, page):
    page.put("#panel", FakeHandle())
    panel = await browser.find_element("#panel")
    assert await panel.get_top_left_corner() == {"x": 1, "y": 2}
    assert await panel.get_top_right_corner() == {"x": 31, "y": 2}
    assert await panel.get_bottom_left_corner() == {"x": 1, "y": 42}
    assert await panel.get_bottom_right_corner() == {"x": 31, "y": 42}


@pytest.mark.asyncio
async def test_drag_by_offset_starts_at_center(browser, page):
    page.put("#card", FakeHandle())
    card = await browser.find_element("#card")
    await card.drag_to({"x": 100, "y": -20})
    assert page.mouse.events == [
        ("move", 16, 22, 1),
        ("down",),
        ("move", 116, 2, 100),
        ("up",),
    ]


@pytest.mark.asyncio
async def test_drag_by_offset_from_start_offset(browser, page):
    page.put("#splitter", FakeHandle())
    splitter = await browser.find_element("#splitter")
    await splitter.drag_to({"x": 0, "y": 5}, start_offset={"x": 2, "y": 3})
    assert page.mouse.events[0] == ("move", 3, 5, 1)
    assert page.mouse.events[2] == ("move", 3, 10, 5)


@pytest.mark.asyncio
async def test_drag_to_element_aligns_top_left_corners(browser, page):
    target = FakeHandle()
    target.box = {"x": 201, "y": 52, "width": 10, "height": 10}
    page.put("#card", FakeHandle())
    page.put("#column", target)
    card = await browser.find_element("#card")
    column = await browser.find_element("#column")
    await card.drag_to(column)
    assert page.mouse.events == [
        ("move", 1, 2, 1),
        ("down",),
        ("move", 201, 52, 200),
        ("up",),
    ]


@pytest.mark.asyncio
async def test_drag_around_bounds(browser, page):
    page.put("#selection", FakeHandle())
    selection = await browser.find_element("#selection")
    await selection.drag_around_bounds()
    assert page.mouse.events[0] == ("move", 1, 2, 1)
    assert page.mouse.events[2] == ("move", 31, 42, 40)


def test_xpath_literal_quoting():
    assert xpath_literal("Saved") == '"Saved"'
    assert xpath_literal('Say "hi"') == "'Say \"hi\"'"
    assert xpath_literal('It\'s "done"') == 'concat("It\'s ", \'"\', "done", \'"\', "")'


@pytest.mark.asyncio
async def test_wait_for_element_with_text_containing_quotes(browser, page):
    page.put("//*[text()='Say \"hi\"']", FakeHandle(text='Say "hi"'))
    element = await browser.wait_for_element_with_text('Say "hi"')
    assert await element.get_text() == 'Say "hi"'


def scrollable(page, direction, edge_after=None, target_after=None):
    """A container whose edge is reached, or whose target row renders, after N key presses."""
    handle = FakeHandle()
    presses = []

    def on_press(key):
        presses.append(key)
        if target_after is not None and len(presses) == target_after:
            page.put("#row-40", FakeHandle())

    page.keyboard.on_press = on_press
    handle.scripts[direction.at_edge_script] = lambda: edge_after is not None and len(presses) >= edge_after
    page.put("#list", handle)
    return handle


@pytest.mark.asyncio
async def test_scroll_stops_when_target_appears(browser, page):
    handle = scrollable(page, ScrollDirection.down, target_after=2)
    bar = await browser.find_element("#list", ScrollBar)
    await bar.scroll_down("#row-40")
    assert handle.clicks == 1
    assert page.keyboard.pressed == ["ArrowDown", "ArrowDown"]


@pytest.mark.asyncio
async def test_scroll_stops_at_edge(browser, page):
    scrollable(page, ScrollDirection.up, edge_after=3)
    bar = await browser.find_element("#list", ScrollBar)
    await bar.scroll_up("#row-40")
    assert page.keyboard.pressed == ["ArrowUp"] * 3
    assert await browser.exists("#row-40") is False


@pytest.mark.asyncio
async def test_scroll_is_a_no_op_when_target_already_rendered(browser, page):
    handle = scrollable(page, ScrollDirection.right)
    page.put("#row-40", FakeHandle())
    bar = await browser.find_element("#list", ScrollBar)
    await bar.scroll_right("#row-40")
    assert handle.clicks == 0 and page.keyboard.pressed == []


def test_remote_path():
    assert remote_path("fileserver/share/data/input.csv", windows=True) == "\\\\fileserver\\share\\data\\input.csv"
    assert remote_path("fileserver/share/data/input.csv", windows=False) == "/net/fileserver/share/data/input.csv"


@pytest.mark.asyncio
async def test_file_import(browser, page):
    handle = FakeHandle()
    page.put("input[type=file]", handle)
    field = await browser.find_element("input[type=file]", FileImport)
    await field.import_local_file("/tmp/input.csv")
    used = await field.import_remote_file("fileserver/share/input.csv")
    assert handle.files == ["/tmp/input.csv", used]
    assert used.endswith("input.csv")


@pytest.mark.asyncio
async def test_grid_cell_fill(browser, page):
    handle = FakeHandle()
    page.put("td.amount", handle)
    cell = await browser.find_element("td.amount", GridCell)
    await cell.fill_cell("42.50")
    assert handle.clicks == 1
    assert page.keyboard.typed == ["42.50"]
    assert page.keyboard.pressed == ["Enter"]


@pytest.mark.asyncio
async def test_clear_cookies(browser, page):
    page.url = "https://app.local/home"
    await browser.clear_cookies()
    assert page.context.cookie_clears == ["https://app.local/home"]

    await browser.clear_cookies("https://sso.local/")
    assert page.context.cookie_clears[-1] == "https://sso.local/"
    assert page.visited == ["https://sso.local/", "https://app.local/home"]
    assert page.url == "https://app.local/home"


@pytest.mark.asyncio
async def test_show_cursor_injects_marker_script(browser, page):
    await browser.show_cursor()
    assert len(page.scripts) == 1
    assert "uiharness-cursor" in page.scripts[0]
