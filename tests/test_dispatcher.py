# tests/test_dispatcher.py
import asyncio
import time

import pytest
from pydantic import Field

from mcp_browser_tools.dispatcher import Dispatcher, ToolCall
from mcp_browser_tools.envelope import ErrorKind
from mcp_browser_tools.registry import ToolRegistry, tool
from mcp_browser_tools.tools import build_registry
from mcp_browser_tools.tools.arguments import TimedArgs

from _utils import FakeLauncher, make_context

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


class SleepArgs(TimedArgs):
    seconds: float = Field(default=0.0, ge=0)


def make_probe_registry(log):
    """Tools that record when they run, for ordering and timeout checks."""
    reg = ToolRegistry()

    @tool("sleepy", SleepArgs, session="browser", registry=reg)
    async def sleepy(args, ctx):
        """Sleep inside the browser session."""
        log.append(("start", args.seconds))
        await asyncio.sleep(args.seconds)
        log.append(("end", args.seconds))
        return f"slept {args.seconds}"

    @tool("explode", TimedArgs, registry=reg)
    async def explode(args, ctx):
        """Raise something nobody expects."""
        raise KeyError("surprise")

    return reg


def test_navigate_launches_browser_and_reports_url(event_loop):
    ctx, launcher = make_context()
    dispatcher = Dispatcher(build_registry(), ctx)

    env = event_loop.run_until_complete(dispatcher.call("navigate", {"url": "https://example.com"}))

    assert env.ok, env.message
    assert env.texts == ["Navigated to https://example.com"]
    assert launcher.count == 1
    launcher.last.driver.get.assert_called_once_with("https://example.com")


def test_second_call_reuses_session(event_loop):
    ctx, launcher = make_context()
    dispatcher = Dispatcher(build_registry(), ctx)

    async def scenario():
        await dispatcher.call("navigate", {"url": "https://example.com"})
        return await dispatcher.call("go_back", {})

    env = event_loop.run_until_complete(scenario())
    assert env.ok
    assert launcher.count == 1
    launcher.last.driver.back.assert_called_once()


def test_invalid_arguments_do_not_launch(event_loop):
    ctx, launcher = make_context()
    dispatcher = Dispatcher(build_registry(), ctx)

    env = event_loop.run_until_complete(dispatcher.call("navigate", {}))

    assert env.error_kind is ErrorKind.INVALID_ARGUMENTS
    assert "url" in env.message
    assert launcher.count == 0


def test_non_object_arguments_are_invalid(event_loop):
    ctx, _ = make_context()
    dispatcher = Dispatcher(build_registry(), ctx)

    env = event_loop.run_until_complete(dispatcher.handle(ToolCall("navigate", ["https://example.com"])))
    assert env.error_kind is ErrorKind.INVALID_ARGUMENTS


def test_unknown_tool(event_loop):
    ctx, launcher = make_context()
    dispatcher = Dispatcher(build_registry(), ctx)

    env = event_loop.run_until_complete(dispatcher.call("playwright_teleport", {}))

    assert env.error_kind is ErrorKind.UNKNOWN_TOOL
    assert "playwright_teleport" in env.message
    assert launcher.count == 0


def test_launch_failure_is_reported_and_retried_next_call(event_loop):
    launcher = FakeLauncher(fail=RuntimeError("chrome binary missing"))
    ctx, _ = make_context(browser_launcher=launcher)
    dispatcher = Dispatcher(build_registry(), ctx)

    env = event_loop.run_until_complete(dispatcher.call("navigate", {"url": "https://example.com"}))
    assert env.error_kind is ErrorKind.SESSION_LAUNCH_FAILED
    assert "chrome binary missing" in env.message
    assert ctx.sessions["browser"].current is None

    launcher.fail = None
    env = event_loop.run_until_complete(dispatcher.call("navigate", {"url": "https://example.com"}))
    assert env.ok


def test_per_call_timeout_bounds_the_operation(event_loop):
    log = []
    ctx, _ = make_context()
    dispatcher = Dispatcher(make_probe_registry(log), ctx)

    started = time.monotonic()
    env = event_loop.run_until_complete(dispatcher.call("sleepy", {"seconds": 5, "timeout": 100}))
    elapsed = time.monotonic() - started

    assert env.error_kind is ErrorKind.OPERATION_TIMEOUT
    assert "100ms" in env.message
    assert elapsed < 2
    assert log == [("start", 5)]


def test_calls_on_one_session_do_not_overlap(event_loop):
    log = []
    ctx, launcher = make_context()
    dispatcher = Dispatcher(make_probe_registry(log), ctx)

    async def scenario():
        return await asyncio.gather(
            dispatcher.call("sleepy", {"seconds": 0.05}),
            dispatcher.call("sleepy", {"seconds": 0.01}),
            dispatcher.call("sleepy", {"seconds": 0.02}),
        )

    envs = event_loop.run_until_complete(scenario())
    assert all(e.ok for e in envs)
    assert launcher.count == 1
    # strictly alternating start/end means no interleaving
    assert [kind for kind, _ in log] == ["start", "end"] * 3


def test_unexpected_fault_is_enveloped(event_loop):
    ctx, _ = make_context()
    dispatcher = Dispatcher(make_probe_registry([]), ctx)

    env = event_loop.run_until_complete(dispatcher.call("explode", {}))
    assert env.error_kind is ErrorKind.UNEXPECTED_FAULT
    assert "KeyError" in env.message


def test_close_then_navigate_relaunches(event_loop):
    ctx, launcher = make_context()
    dispatcher = Dispatcher(build_registry(), ctx)

    async def scenario():
        await dispatcher.call("navigate", {"url": "https://example.com"})
        closed = await dispatcher.call("close", {})
        again = await dispatcher.call("navigate", {"url": "https://example.org"})
        return closed, again

    closed, again = event_loop.run_until_complete(scenario())
    assert closed.texts == ["Browser closed"]
    assert again.ok
    assert launcher.count == 2
    assert launcher.launched[0].closed


def test_timeout_falls_back_to_configured_default():
    ctx, _ = make_context(timeout_ms=1234)
    dispatcher = Dispatcher(build_registry(), ctx)
    assert dispatcher._timeout_ms(TimedArgs(), None, None) == 1234
    assert dispatcher._timeout_ms(TimedArgs(timeout=50), None, None) == 50
