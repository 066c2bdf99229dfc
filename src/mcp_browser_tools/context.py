"""
Process-wide server state and the per-call tool context.

ServerContext owns the session managers and the diagnostics buffer. It
replaces module-level globals: the dispatcher and the tools receive it (or a
ToolContext derived from it) explicitly.

Usage:
    from mcp_browser_tools.context import get_context

    ctx = get_context()
    session = await ctx.sessions["browser"].acquire()
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .browser.http import make_api_launcher
from .browser.driver import make_browser_launcher
from .browser.manager import Launcher, Session, SessionManager
from .browser.settings import ApiSettings, BrowserSettings
from .utils.diagnostics import DiagnosticsBuffer


@dataclass
class ServerContext:
    """
    Attributes:
        config: Environment configuration dictionary (see get_env_config)
        diagnostics: Capped ring of console/network/API events
        sessions: One SessionManager per session kind ("browser", "api")
    """

    config: dict
    diagnostics: DiagnosticsBuffer
    sessions: Dict[str, SessionManager] = field(default_factory=dict)

    def manager(self, kind: str) -> SessionManager:
        return self.sessions[kind]

    async def shutdown(self) -> None:
        for manager in self.sessions.values():
            await manager.shutdown()


@dataclass(frozen=True)
class ToolContext:
    """What a tool sees while executing one call."""

    session: Optional[Session]
    diagnostics: DiagnosticsBuffer
    sessions: Mapping[str, SessionManager]
    config: Mapping[str, Any]
    timeout_ms: int

    @property
    def driver(self):
        return getattr(self.session, "driver", None)

    @property
    def client(self):
        return getattr(self.session, "client", None)

    @property
    def session_timeout_ms(self) -> int:
        """The session's own timeout; driver-wide timeouts go back to it after each call."""
        configured = getattr(getattr(self.session, "settings", None), "timeout_ms", None)
        return int(configured or self.config.get("timeout_ms") or self.timeout_ms)


def build_context(
    config: Mapping[str, Any],
    browser_launcher: Optional[Launcher] = None,
    api_launcher: Optional[Launcher] = None,
) -> ServerContext:
    """
    Wire managers and the diagnostics buffer from configuration. Launchers
    default to Selenium Chrome and httpx; tests pass fakes.

    Nothing here performs I/O: sessions are created on first use.
    """
    config = dict(config)
    diagnostics = DiagnosticsBuffer(int(config.get("diagnostics_capacity") or 1000))
    browser = SessionManager(
        "browser",
        BrowserSettings.from_config(config),
        browser_launcher or make_browser_launcher(diagnostics),
        on_reset=diagnostics.clear,
    )
    api = SessionManager(
        "api",
        ApiSettings.from_config(config),
        api_launcher or make_api_launcher(diagnostics),
    )
    return ServerContext(config=config, diagnostics=diagnostics, sessions={"browser": browser, "api": api})


# ============================================================================
# Global Context Management
# ============================================================================

_global_context: Optional[ServerContext] = None


def get_context() -> ServerContext:
    """
    Get or create the global server context from the environment.

    All calls return the same instance. Use reset_context() to drop it
    (mainly for testing).
    """
    global _global_context

    if _global_context is None:
        from .config.environment import get_env_config
        _global_context = build_context(get_env_config())

    return _global_context


def set_context(ctx: ServerContext) -> None:
    global _global_context
    _global_context = ctx


def reset_context() -> None:
    """
    Reset the global context.

    Sessions held by the old context are not closed; call
    `await ctx.shutdown()` first when that matters.
    """
    global _global_context
    _global_context = None


__all__ = [
    "ServerContext",
    "ToolContext",
    "build_context",
    "get_context",
    "set_context",
    "reset_context",
]
