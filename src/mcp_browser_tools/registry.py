"""
Tool contract, tool catalog entries and the registry.

A tool is anything with a name, a pydantic argument model and
`async execute(arguments, context) -> ResultEnvelope`. Concrete tools are
plain async operations registered with the @tool decorator; the registry
turns a ToolSpec into a FunctionTool the first time the tool is resolved.

Example:
    >>> @tool("navigate", NavigateArgs, session="browser")
    ... async def navigate(args, ctx):
    ...     await ctx.session.run(ctx.driver.get, args.url)
    ...     return f"Navigated to {args.url}"
"""

import inspect
import threading
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Type

from pydantic import BaseModel

from .decorators.envelope import tool_envelope
from .envelope import ResultEnvelope
from .errors import UnknownToolError

import logging
logger = logging.getLogger(__name__)


class Tool(Protocol):
    name: str
    description: str
    args_model: Type[BaseModel]
    session_kind: Optional[str]
    requires_session: bool

    async def execute(self, arguments: Any, context: Any) -> ResultEnvelope: ...


@dataclass(frozen=True)
class ToolSpec:
    """
    Static catalog entry. Building one performs no I/O.

    session_kind:      which session the tool works against ("browser", "api")
                       or None. Calls with a kind are serialized on that
                       session's use lock.
    requires_session:  the dispatcher acquires (launching if needed) a session
                       before execute. Defaults to True when session_kind is set.
    """

    name: str
    description: str
    args_model: Type[BaseModel]
    operation: Callable[[Any, Any], Awaitable[Any]]
    session_kind: Optional[str] = None
    requires_session: bool = False

    def input_schema(self) -> dict:
        schema = self.args_model.model_json_schema()
        schema.pop("title", None)
        schema.setdefault("properties", {})
        return schema


class FunctionTool:
    """Tool backed by a registered operation, executed through safe_execute."""

    def __init__(self, spec: ToolSpec):
        self.spec = spec
        self.name = spec.name
        self.description = spec.description
        self.args_model = spec.args_model
        self.session_kind = spec.session_kind
        self.requires_session = spec.requires_session
        self._execute = tool_envelope(
            spec.name,
            requires_session=spec.requires_session,
            session_kind=spec.session_kind,
        )(spec.operation)

    async def execute(self, arguments: Any, context: Any) -> ResultEnvelope:
        return await self._execute(arguments, context)

    def __repr__(self) -> str:
        return f"<FunctionTool {self.name}>"


class ToolRegistry:
    """Maps tool names to lazily constructed, reused tool instances."""

    def __init__(self) -> None:
        self._specs: Dict[str, ToolSpec] = {}
        self._instances: Dict[str, Tool] = {}
        self._lock = threading.Lock()

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._specs:
            raise ValueError(f"Tool '{spec.name}' is already registered")
        self._specs[spec.name] = spec
        logger.debug(f"Registered tool: {spec.name}")

    def resolve(self, name: str) -> Tool:
        """Return the singleton instance for `name`, constructing it on first request."""
        with self._lock:
            instance = self._instances.get(name)
            if instance is not None:
                return instance
            spec = self._specs.get(name)
            if spec is None:
                raise UnknownToolError(name)
            instance = FunctionTool(spec)
            self._instances[name] = instance
            return instance

    def spec(self, name: str) -> ToolSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def specs(self) -> List[ToolSpec]:
        return list(self._specs.values())

    def names(self) -> List[str]:
        return list(self._specs)

    def is_instantiated(self, name: str) -> bool:
        return name in self._instances

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)


default_registry = ToolRegistry()


def _describe(fn: Callable) -> str:
    doc = inspect.getdoc(fn) or ""
    return doc.split("\n\n", 1)[0].replace("\n", " ").strip()


def tool(
    name: str,
    args_model: Type[BaseModel],
    *,
    session: Optional[str] = None,
    requires_session: Optional[bool] = None,
    description: Optional[str] = None,
    registry: Optional[ToolRegistry] = None,
):
    """Register an async operation as a tool. The operation is returned unchanged."""

    def decorator(fn):
        spec = ToolSpec(
            name=name,
            description=description or _describe(fn),
            args_model=args_model,
            operation=fn,
            session_kind=session,
            requires_session=(session is not None) if requires_session is None else requires_session,
        )
        (registry if registry is not None else default_registry).register(spec)
        return fn

    return decorator


__all__ = [
    "Tool",
    "ToolSpec",
    "FunctionTool",
    "ToolRegistry",
    "default_registry",
    "tool",
]
