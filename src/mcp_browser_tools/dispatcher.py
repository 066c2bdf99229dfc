"""
Routes tool calls to tools and guarantees one envelope per call.

    request -> resolve name -> validate arguments -> (acquire session)
            -> tool.execute -> envelope

Every path ends in a ResultEnvelope. Faults that escape a tool (which
safe_execute should already have prevented) are converted here as well, so
the transport layer only ever sees envelopes.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ValidationError

from .browser.manager import describe_error
from .browser.settings import settings_overrides
from .constants import DEFAULT_TIMEOUT_MS
from .context import ServerContext, ToolContext
from .envelope import ErrorKind, ResultEnvelope, failure
from .errors import SessionLaunchError, UnknownToolError
from .registry import ToolRegistry

import logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolCall:
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)


def format_validation_error(tool_name: str, exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        problems.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return f"Invalid arguments for {tool_name}: " + "; ".join(problems)


class Dispatcher:
    def __init__(self, registry: ToolRegistry, context: ServerContext):
        self.registry = registry
        self.context = context

    async def handle(self, request: ToolCall) -> ResultEnvelope:
        started = time.monotonic()
        try:
            envelope = await self._dispatch(request)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Fault escaped tool {request.name}")
            envelope = failure(
                ErrorKind.UNEXPECTED_FAULT,
                f"{request.name}: unexpected {type(e).__name__}: {describe_error(e)}",
            )
        elapsed = (time.monotonic() - started) * 1000
        if envelope.is_error:
            logger.info(f"tool {request.name} -> {envelope.error_kind.value} ({elapsed:.0f}ms)")
        else:
            logger.info(f"tool {request.name} -> success ({elapsed:.0f}ms)")
        return envelope

    async def call(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> ResultEnvelope:
        return await self.handle(ToolCall(name, arguments or {}))

    async def _dispatch(self, request: ToolCall) -> ResultEnvelope:
        try:
            tool = self.registry.resolve(request.name)
        except UnknownToolError as e:
            return failure(ErrorKind.UNKNOWN_TOOL, f"{e}. Available tools: {', '.join(sorted(self.registry.names()))}")

        raw = request.arguments if request.arguments is not None else {}
        if not isinstance(raw, Mapping):
            return failure(ErrorKind.INVALID_ARGUMENTS, f"Invalid arguments for {tool.name}: expected an object")
        try:
            arguments = tool.args_model.model_validate(dict(raw))
        except ValidationError as e:
            return failure(ErrorKind.INVALID_ARGUMENTS, format_validation_error(tool.name, e))

        if tool.session_kind is None:
            return await tool.execute(arguments, self._tool_context(None, arguments, None))

        manager = self.context.sessions[tool.session_kind]
        async with manager.use_lock:
            session = manager.current
            if tool.requires_session:
                overrides = settings_overrides(type(manager.defaults), arguments)
                try:
                    session = await manager.acquire(overrides)
                except SessionLaunchError as e:
                    return failure(ErrorKind.SESSION_LAUNCH_FAILED, str(e))
            return await tool.execute(arguments, self._tool_context(session, arguments, manager.defaults))

    def _tool_context(self, session, arguments: BaseModel, defaults) -> ToolContext:
        return ToolContext(
            session=session,
            diagnostics=self.context.diagnostics,
            sessions=self.context.sessions,
            config=self.context.config,
            timeout_ms=self._timeout_ms(arguments, session, defaults),
        )

    def _timeout_ms(self, arguments: BaseModel, session, defaults) -> int:
        """Per-call `timeout` argument, else the session's default, else the process default."""
        requested = getattr(arguments, "timeout", None)
        if requested:
            return int(requested)
        settings = getattr(session, "settings", None) or defaults
        configured = getattr(settings, "timeout_ms", None) or self.context.config.get("timeout_ms")
        return int(configured or DEFAULT_TIMEOUT_MS)

    def list_tools(self) -> list:
        return self.registry.specs()


__all__ = ["ToolCall", "Dispatcher", "format_validation_error"]
