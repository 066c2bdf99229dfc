# tests/tests_decorators/test_safe_execute.py
import asyncio
from types import SimpleNamespace

import httpx
import pytest
from selenium.common.exceptions import (
    InvalidSessionIdException,
    NoSuchElementException,
    TimeoutException,
    WebDriverException,
)

from mcp_browser_tools.decorators import classify_fault, safe_execute, tool_envelope
from mcp_browser_tools.envelope import ErrorKind, failure
from mcp_browser_tools.errors import ToolOperationError
from mcp_browser_tools.utils.diagnostics import DiagnosticsBuffer

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


def ctx_with(session=None, timeout_ms=1000):
    return SimpleNamespace(session=session, timeout_ms=timeout_ms)


@pytest.mark.parametrize(
    "exc, kind",
    [
        (asyncio.TimeoutError(), ErrorKind.OPERATION_TIMEOUT),
        (TimeoutException("waited"), ErrorKind.OPERATION_TIMEOUT),
        (httpx.ReadTimeout("slow"), ErrorKind.OPERATION_TIMEOUT),
        (InvalidSessionIdException("gone"), ErrorKind.OPERATION_FAILED),
        (NoSuchElementException("#missing"), ErrorKind.OPERATION_FAILED),
        (WebDriverException("crashed"), ErrorKind.OPERATION_FAILED),
        (ToolOperationError("no new tab"), ErrorKind.OPERATION_FAILED),
        (httpx.ConnectError("refused"), ErrorKind.OPERATION_FAILED),
        (ValueError("bad key"), ErrorKind.OPERATION_FAILED),
        (KeyError("bug"), ErrorKind.UNEXPECTED_FAULT),
        (AttributeError("bug"), ErrorKind.UNEXPECTED_FAULT),
    ],
)
def test_classify_fault(exc, kind):
    env = classify_fault(exc, "click", 250)
    assert env.error_kind is kind
    assert "click" in env.message


def test_timeout_message_names_the_budget():
    env = classify_fault(asyncio.TimeoutError(), "navigate", 100)
    assert env.message == "Timeout 100ms exceeded while running navigate"


def test_lost_session_message_mentions_relaunch():
    env = classify_fault(InvalidSessionIdException("invalid session id"), "click", 100)
    assert "relaunched" in env.message


def test_return_value_is_wrapped(event_loop):
    async def op(args, ctx):
        return ["a", "b"]

    env = event_loop.run_until_complete(safe_execute("t", op, None, ctx_with()))
    assert env.ok
    assert env.texts == ["a", "b"]


def test_operation_may_return_its_own_envelope(event_loop):
    async def op(args, ctx):
        return failure(ErrorKind.OPERATION_FAILED, "custom")

    env = event_loop.run_until_complete(safe_execute("t", op, None, ctx_with()))
    assert env.message == "custom"


def test_timeout_fires(event_loop):
    async def op(args, ctx):
        await asyncio.sleep(5)

    env = event_loop.run_until_complete(safe_execute("slow", op, None, ctx_with(timeout_ms=50)))
    assert env.error_kind is ErrorKind.OPERATION_TIMEOUT


def test_cancellation_propagates(event_loop):
    async def op(args, ctx):
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        event_loop.run_until_complete(safe_execute("t", op, None, ctx_with()))


def test_console_is_collected_after_success_and_failure(event_loop):
    buf = DiagnosticsBuffer(10)

    class Session:
        def collect_console(self):
            buf.add("console-api", "collected")
            return 1

    async def ok(args, ctx):
        return "fine"

    async def bad(args, ctx):
        raise WebDriverException("boom")

    session = Session()
    event_loop.run_until_complete(safe_execute("a", ok, None, ctx_with(session)))
    event_loop.run_until_complete(safe_execute("b", bad, None, ctx_with(session)))
    assert [e.message for e in buf.snapshot()] == ["collected", "collected"]


def test_collection_errors_do_not_change_the_result(event_loop):
    class Session:
        def collect_console(self):
            raise RuntimeError("log endpoint gone")

    async def ok(args, ctx):
        return "fine"

    env = event_loop.run_until_complete(safe_execute("a", ok, None, ctx_with(Session())))
    assert env.texts == ["fine"]


def test_tool_envelope_decorator(event_loop):
    @tool_envelope("hover", requires_session=True, session_kind="browser")
    async def hover(args, ctx):
        return f"Hovered {args}"

    ready = event_loop.run_until_complete(hover("#menu", ctx_with(session=object())))
    missing = event_loop.run_until_complete(hover("#menu", ctx_with()))
    assert ready.texts == ["Hovered #menu"]
    assert missing.error_kind is ErrorKind.SESSION_UNAVAILABLE
