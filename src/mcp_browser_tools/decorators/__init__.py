# mcp_browser_tools/decorators/__init__.py
#
# Re-exports the execution template and the session precondition.

from .ensure import ensure_session_ready
from .envelope import safe_execute, tool_envelope, classify_fault

__all__ = [
    "ensure_session_ready",
    "safe_execute",
    "tool_envelope",
    "classify_fault",
]
