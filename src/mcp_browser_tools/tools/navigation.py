"""Navigation and browser session tools."""

from typing import Literal, Optional

from pydantic import Field
from selenium.webdriver.support.ui import WebDriverWait

from .arguments import NoArgs, TimedArgs
from ..errors import ToolOperationError
from ..registry import tool

_READY_STATES = {
    "load": ("complete",),
    "domcontentloaded": ("interactive", "complete"),
}


class NavigateArgs(TimedArgs):
    url: str = Field(description="Absolute URL to navigate to, e.g. https://example.com")
    headless: Optional[bool] = Field(default=None, description="Run the browser headless (relaunches the browser if it differs)")
    width: Optional[int] = Field(default=None, ge=200, le=7680, description="Browser window width in pixels")
    height: Optional[int] = Field(default=None, ge=200, le=4320, description="Browser window height in pixels")
    user_agent: Optional[str] = Field(default=None, description="User agent for the browser (relaunches the browser if it differs)")
    wait_until: Literal["load", "domcontentloaded"] = Field(
        default="load", description="Wait for the full load or only for the DOM to be parsed"
    )


class ResizeArgs(TimedArgs):
    width: int = Field(ge=200, le=7680, description="Browser window width in pixels")
    height: int = Field(ge=200, le=4320, description="Browser window height in pixels")


class UserAgentArgs(TimedArgs):
    user_agent: str = Field(min_length=1, description="User agent string; the browser is relaunched with it")


def _resize(driver, width: Optional[int], height: Optional[int]) -> None:
    size = driver.get_window_size() or {}
    target_w = width or size.get("width")
    target_h = height or size.get("height")
    if (target_w, target_h) != (size.get("width"), size.get("height")):
        driver.set_window_size(target_w, target_h)


def _wait_ready(driver, wait_until: str, timeout: float) -> None:
    states = _READY_STATES[wait_until]
    WebDriverWait(driver, timeout).until(
        lambda d: d.execute_script("return document.readyState") in states
    )


def _load(driver, url: str, wait_until: str, timeout: float, restore_timeout: float) -> None:
    driver.set_page_load_timeout(timeout)
    try:
        driver.get(url)
        _wait_ready(driver, wait_until, timeout)
    finally:
        # The page-load timeout is driver-wide; later calls must not inherit this one
        driver.set_page_load_timeout(restore_timeout)


@tool("navigate", NavigateArgs, session="browser")
async def navigate(args: NavigateArgs, ctx):
    """Navigate the browser to a URL. Launches the browser on first use."""
    driver = ctx.driver
    if args.width or args.height:
        await ctx.session.run(_resize, driver, args.width, args.height)
    await ctx.session.run(
        _load, driver, args.url, args.wait_until, ctx.timeout_ms / 1000.0, ctx.session_timeout_ms / 1000.0
    )
    return f"Navigated to {args.url}"


@tool("go_back", TimedArgs, session="browser")
async def go_back(args: TimedArgs, ctx):
    """Navigate back in the browser history."""
    await ctx.session.run(ctx.driver.back)
    return "Navigated back in browser history"


@tool("go_forward", TimedArgs, session="browser")
async def go_forward(args: TimedArgs, ctx):
    """Navigate forward in the browser history."""
    await ctx.session.run(ctx.driver.forward)
    return "Navigated forward in browser history"


@tool("resize", ResizeArgs, session="browser")
async def resize(args: ResizeArgs, ctx):
    """Resize the browser window."""
    await ctx.session.run(ctx.driver.set_window_size, args.width, args.height)
    return f"Browser window resized to {args.width}x{args.height}"


@tool("custom_user_agent", UserAgentArgs, session="browser")
async def custom_user_agent(args: UserAgentArgs, ctx):
    """
    Set a custom user agent for the browser.

    The dispatcher relaunches the browser with the requested user agent when it
    differs from the current one; this tool verifies the page reports it.
    """
    reported = await ctx.session.run(ctx.driver.execute_script, "return navigator.userAgent;")
    if reported != args.user_agent:
        raise ToolOperationError(
            f"User agent validation failed. Expected: {args.user_agent}, Got: {reported}"
        )
    return f"User agent set to: {args.user_agent}"


@tool("close", NoArgs, session="browser", requires_session=False)
async def close(args: NoArgs, ctx):
    """Close the browser and release its resources. The next browser tool launches a fresh one."""
    closed = await ctx.sessions["browser"].reset()
    if closed:
        return "Browser closed"
    return "No browser was open"


__all__ = ["navigate", "go_back", "go_forward", "resize", "custom_user_agent", "close"]
