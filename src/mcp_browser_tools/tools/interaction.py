"""Element interaction tools: clicks, form input, keyboard and drag-and-drop."""

import os
from typing import Optional

from pydantic import Field
from selenium.common.exceptions import NoSuchElementException, TimeoutException
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.support.ui import Select, WebDriverWait

from .arguments import SelectorArgs, TimedArgs
from ..actions.elements import element_wait_secs, find_element, inside_iframe
from ..actions.keyboard import press_key as _press_key
from ..errors import ToolOperationError
from ..registry import tool


class IframeSelectorArgs(SelectorArgs):
    iframe_selector: str = Field(description="Selector of the iframe that contains the element")


class FillArgs(SelectorArgs):
    value: str = Field(description="Text to type into the field")
    clear: bool = Field(default=True, description="Clear the field before typing")


class IframeFillArgs(FillArgs):
    iframe_selector: str = Field(description="Selector of the iframe that contains the field")


class SelectArgs(SelectorArgs):
    value: str = Field(description="Option value (or, failing that, visible text) to select")


class DragArgs(TimedArgs):
    source_selector: str = Field(description="Selector of the element to drag")
    target_selector: str = Field(description="Selector of the drop target")


class PressKeyArgs(TimedArgs):
    key: str = Field(min_length=1, description="Key or combination to press, e.g. Enter, ArrowDown, Control+A")
    selector: Optional[str] = Field(default=None, description="Optional element to focus before pressing")


class UploadFileArgs(SelectorArgs):
    file_path: str = Field(description="Absolute path of the file to upload")


def _click(driver, selector: str, timeout: float, iframe_selector: Optional[str] = None) -> None:
    with inside_iframe(driver, iframe_selector, timeout):
        element = find_element(driver, selector, timeout=timeout, clickable=True)
        driver.execute_script("arguments[0].scrollIntoView({block: 'center', inline: 'center'});", element)
        element.click()


def _fill(driver, selector: str, value: str, clear: bool, timeout: float, iframe_selector: Optional[str] = None) -> None:
    with inside_iframe(driver, iframe_selector, timeout):
        element = find_element(driver, selector, timeout=timeout, visible_only=True)
        if clear:
            element.clear()
        element.send_keys(value)


def _select(driver, selector: str, value: str, timeout: float) -> str:
    element = find_element(driver, selector, timeout=timeout, visible_only=True)
    dropdown = Select(element)
    try:
        dropdown.select_by_value(value)
    except NoSuchElementException:
        # Fall back to the label an agent sees on screen
        dropdown.select_by_visible_text(value)
    return dropdown.first_selected_option.get_attribute("value")


def _hover(driver, selector: str, timeout: float) -> None:
    element = find_element(driver, selector, timeout=timeout, visible_only=True)
    ActionChains(driver).move_to_element(element).perform()


def _drag(driver, source: str, target: str, timeout: float) -> None:
    src = find_element(driver, source, timeout=timeout, visible_only=True)
    dst = find_element(driver, target, timeout=timeout, visible_only=True)
    ActionChains(driver).click_and_hold(src).move_to_element(dst).release(dst).perform()


def _upload(driver, selector: str, file_path: str, timeout: float) -> None:
    element = find_element(driver, selector, timeout=timeout)
    element.send_keys(file_path)


def _click_and_switch_tab(driver, selector: str, timeout: float) -> str:
    before = list(driver.window_handles)
    _click(driver, selector, timeout)
    try:
        WebDriverWait(driver, timeout).until(lambda d: len(d.window_handles) > len(before))
    except TimeoutException:
        raise ToolOperationError("clicking the element did not open a new tab") from None
    new_handles = [h for h in driver.window_handles if h not in before]
    driver.switch_to.window(new_handles[-1])
    return driver.current_url


@tool("click", SelectorArgs, session="browser")
async def click(args: SelectorArgs, ctx):
    """Click an element on the page."""
    await ctx.session.run(_click, ctx.driver, args.selector, element_wait_secs(ctx.timeout_ms))
    return f"Clicked element: {args.selector}"


@tool("iframe_click", IframeSelectorArgs, session="browser")
async def iframe_click(args: IframeSelectorArgs, ctx):
    """Click an element inside an iframe."""
    await ctx.session.run(
        _click, ctx.driver, args.selector, element_wait_secs(ctx.timeout_ms), args.iframe_selector
    )
    return f"Clicked element {args.selector} inside iframe {args.iframe_selector}"


@tool("fill", FillArgs, session="browser")
async def fill(args: FillArgs, ctx):
    """Fill out an input field."""
    await ctx.session.run(_fill, ctx.driver, args.selector, args.value, args.clear, element_wait_secs(ctx.timeout_ms))
    return f"Filled {args.selector} with: {args.value}"


@tool("iframe_fill", IframeFillArgs, session="browser")
async def iframe_fill(args: IframeFillArgs, ctx):
    """Fill out an input field inside an iframe."""
    await ctx.session.run(
        _fill, ctx.driver, args.selector, args.value, args.clear,
        element_wait_secs(ctx.timeout_ms), args.iframe_selector,
    )
    return f"Filled {args.selector} inside iframe {args.iframe_selector} with: {args.value}"


@tool("select", SelectArgs, session="browser")
async def select(args: SelectArgs, ctx):
    """Select an option in a <select> element."""
    selected = await ctx.session.run(_select, ctx.driver, args.selector, args.value, element_wait_secs(ctx.timeout_ms))
    return f"Selected {selected} in {args.selector}"


@tool("hover", SelectorArgs, session="browser")
async def hover(args: SelectorArgs, ctx):
    """Hover the mouse over an element."""
    await ctx.session.run(_hover, ctx.driver, args.selector, element_wait_secs(ctx.timeout_ms))
    return f"Hovered {args.selector}"


@tool("drag", DragArgs, session="browser")
async def drag(args: DragArgs, ctx):
    """Drag an element onto another element."""
    await ctx.session.run(
        _drag, ctx.driver, args.source_selector, args.target_selector, element_wait_secs(ctx.timeout_ms)
    )
    return f"Dragged element from {args.source_selector} to {args.target_selector}"


@tool("press_key", PressKeyArgs, session="browser")
async def press_key(args: PressKeyArgs, ctx):
    """Press a key or key combination, optionally on a specific element."""
    await ctx.session.run(_press_key, ctx.driver, args.key, args.selector, element_wait_secs(ctx.timeout_ms))
    return f"Pressed key: {args.key}"


@tool("upload_file", UploadFileArgs, session="browser")
async def upload_file(args: UploadFileArgs, ctx):
    """Set a local file on an <input type="file"> element."""
    if not os.path.isfile(args.file_path):
        raise ToolOperationError(f"file not found: {args.file_path}")
    await ctx.session.run(_upload, ctx.driver, args.selector, os.path.abspath(args.file_path), element_wait_secs(ctx.timeout_ms))
    return f"Uploaded file '{args.file_path}' to '{args.selector}'"


@tool("click_and_switch_tab", SelectorArgs, session="browser")
async def click_and_switch_tab(args: SelectorArgs, ctx):
    """Click a link that opens a new tab and switch to that tab."""
    url = await ctx.session.run(_click_and_switch_tab, ctx.driver, args.selector, element_wait_secs(ctx.timeout_ms))
    return f"Clicked link and switched to new tab. New page URL: {url}"


__all__ = [
    "click",
    "iframe_click",
    "fill",
    "iframe_fill",
    "select",
    "hover",
    "drag",
    "press_key",
    "upload_file",
    "click_and_switch_tab",
]
