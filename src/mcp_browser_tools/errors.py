"""Exceptions raised inside the core. None of them reach the transport layer."""


class BrowserToolsError(Exception):
    """Base class for all mcp_browser_tools exceptions."""


class UnknownToolError(BrowserToolsError, LookupError):
    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class SessionLaunchError(BrowserToolsError):
    """A session could not be created. No half-initialized session is left installed."""

    def __init__(self, kind: str, message: str):
        super().__init__(f"Failed to launch {kind} session: {message}")
        self.kind = kind
        self.reason = message


class ToolOperationError(BrowserToolsError):
    """A tool body detected a failure of its own operation (element missing, no new tab, ...)."""


__all__ = [
    "BrowserToolsError",
    "UnknownToolError",
    "SessionLaunchError",
    "ToolOperationError",
]
