# mcp_browser_tools/decorators/envelope.py

import asyncio
import functools
import time
from typing import Any, Awaitable, Callable, Optional

import httpx
from selenium.common.exceptions import (
    InvalidSessionIdException,
    NoSuchElementException,
    TimeoutException,
    WebDriverException,
)

from .ensure import ensure_session_ready
from ..browser.manager import describe_error
from ..constants import TIMEOUT_GRACE_MS
from ..envelope import ErrorKind, ResultEnvelope, failure, wrap_result
from ..errors import ToolOperationError

import logging
logger = logging.getLogger(__name__)


__all__ = [
    "safe_execute",
    "tool_envelope",
    "classify_fault",
]


Operation = Callable[[Any, Any], Awaitable[Any]]

# Faults that belong to the operation itself; their message is preserved.
_OPERATION_FAULTS = (
    ToolOperationError,
    WebDriverException,
    httpx.HTTPError,
    httpx.InvalidURL,
    ValueError,
    OSError,
)


def classify_fault(exc: BaseException, tool_name: str, timeout_ms: int) -> ResultEnvelope:
    """Map an exception raised by a tool operation to an error envelope."""
    if isinstance(exc, asyncio.TimeoutError):
        return failure(ErrorKind.OPERATION_TIMEOUT, f"Timeout {timeout_ms}ms exceeded while running {tool_name}")
    if isinstance(exc, TimeoutException):
        return failure(ErrorKind.OPERATION_TIMEOUT, f"{tool_name}: {describe_error(exc)}")
    if isinstance(exc, httpx.TimeoutException):
        return failure(ErrorKind.OPERATION_TIMEOUT, f"{tool_name}: request timed out ({describe_error(exc)})")
    if isinstance(exc, InvalidSessionIdException):
        return failure(
            ErrorKind.OPERATION_FAILED,
            f"{tool_name}: browser session was lost ({describe_error(exc)}). "
            "It will be relaunched on the next call.",
        )
    if isinstance(exc, NoSuchElementException):
        return failure(ErrorKind.OPERATION_FAILED, f"{tool_name}: element not found ({describe_error(exc)})")
    if isinstance(exc, _OPERATION_FAULTS):
        return failure(ErrorKind.OPERATION_FAILED, f"{tool_name} failed: {describe_error(exc)}")
    return failure(
        ErrorKind.UNEXPECTED_FAULT,
        f"{tool_name}: unexpected {type(exc).__name__}: {describe_error(exc)}",
    )


async def _collect_session_events(context) -> None:
    session = getattr(context, "session", None)
    collect = getattr(session, "collect_console", None)
    # After a timeout the driver is still busy; get_log would wait for it
    if collect is None or getattr(session, "busy", False):
        return
    try:
        await asyncio.to_thread(collect)
    except Exception as e:
        logger.debug(f"console collection failed: {describe_error(e)}")


async def safe_execute(
    tool_name: str,
    operation: Operation,
    arguments: Any,
    context,
    *,
    requires_session: bool = False,
    session_kind: Optional[str] = None,
) -> ResultEnvelope:
    """
    Shared execution template for every tool:

      1. session-bound tools without a session get SessionUnavailable and
         the operation is not attempted;
      2. the operation runs under the call's timeout (context.timeout_ms);
      3. its return value is wrapped into a success envelope;
      4. any fault is converted to an error envelope here.

    Exactly one envelope comes back. Side effects already performed by the
    operation before a fault are not rolled back. Cancellation propagates.
    """
    if requires_session:
        unavailable = ensure_session_ready(context, tool_name, session_kind)
        if unavailable is not None:
            return unavailable

    timeout_ms = int(getattr(context, "timeout_ms", 0) or 0)
    started = time.monotonic()
    try:
        coro = operation(arguments, context)
        if timeout_ms > 0:
            value = await asyncio.wait_for(coro, timeout=(timeout_ms + TIMEOUT_GRACE_MS) / 1000.0)
        else:
            value = await coro
        envelope = wrap_result(value)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        envelope = classify_fault(e, tool_name, timeout_ms)
        if envelope.error_kind is ErrorKind.UNEXPECTED_FAULT:
            logger.exception(f"Unexpected fault in tool {tool_name}")
        else:
            logger.info(f"{tool_name} -> {envelope.error_kind.value}: {envelope.message}")

    await _collect_session_events(context)
    logger.debug(f"{tool_name} finished in {(time.monotonic() - started) * 1000:.0f}ms ({envelope.outcome.value})")
    return envelope


def tool_envelope(
    name: str,
    *,
    requires_session: bool = False,
    session_kind: Optional[str] = None,
):
    """
    Decorator turning an operation `async def op(args, context)` into an
    `execute(args, context) -> ResultEnvelope` function guarded by
    safe_execute.
    """

    def decorator(operation: Operation):
        @functools.wraps(operation)
        async def execute(arguments, context) -> ResultEnvelope:
            return await safe_execute(
                name,
                operation,
                arguments,
                context,
                requires_session=requires_session,
                session_kind=session_kind,
            )
        return execute

    return decorator
