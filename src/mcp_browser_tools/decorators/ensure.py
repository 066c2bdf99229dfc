# mcp_browser_tools/decorators/ensure.py
from typing import Optional

from ..envelope import ErrorKind, ResultEnvelope, failure


_HINTS = {
    "browser": "Call 'navigate' to open the browser.",
    "api": "Retry the request; the HTTP client is created on demand.",
}


def ensure_session_ready(context, tool_name: str, kind: Optional[str]) -> Optional[ResultEnvelope]:
    """
    Precondition for session-bound tools.

    Returns None when the context carries a session, otherwise a
    SessionUnavailable envelope. The tool's primitive operation must not run
    in the second case.
    """
    if getattr(context, "session", None) is not None:
        return None
    label = kind or "automation"
    hint = _HINTS.get(kind or "", "")
    message = f"{tool_name}: no {label} session is available."
    if hint:
        message = f"{message} {hint}"
    return failure(ErrorKind.SESSION_UNAVAILABLE, message)


__all__ = ["ensure_session_ready"]
