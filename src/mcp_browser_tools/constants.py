"""
Global constants and configuration defaults.
No dependencies - safe to import from anywhere.

Session defaults that operators are expected to tune live in
config/environment.py; the values here are internal limits.
"""

import os

# ============================================================================
# Session Configuration
# ============================================================================

DEFAULT_TIMEOUT_MS = 30_000
"""Fallback per-call timeout when MCP_DEFAULT_TIMEOUT_MS is not set."""

DEFAULT_VIEWPORT = (1280, 720)
"""Fallback browser window size (width, height)."""

SESSION_CLOSE_TIMEOUT_SECS = float(os.getenv("MCP_SESSION_CLOSE_TIMEOUT", "10"))
"""How long a best-effort session close may take before it is abandoned."""

TIMEOUT_GRACE_MS = int(os.getenv("MCP_TIMEOUT_GRACE_MS", "0"))
"""Extra slack added to every per-call timeout before it fires."""


# ============================================================================
# Diagnostics Configuration
# ============================================================================

DIAGNOSTICS_CAPACITY = 1000
"""Fallback size of the diagnostics ring when MCP_DIAGNOSTICS_CAPACITY is not set."""

DEFAULT_CONSOLE_LIMIT = 100
"""Entries returned by console_logs when the caller gives no limit."""


# ============================================================================
# Rendering Configuration
# ============================================================================

MAX_TEXT_CHARS = int(os.getenv("MCP_MAX_TEXT_CHARS", "20000"))
"""Maximum characters returned by the text/HTML extraction tools."""

MAX_SCRIPT_RESULT_CHARS = int(os.getenv("MCP_MAX_SCRIPT_RESULT_CHARS", "20000"))
"""Maximum characters of a serialized evaluate() result."""

MAX_API_BODY_CHARS = int(os.getenv("MCP_MAX_API_BODY_CHARS", "50000"))
"""Maximum characters of an HTTP response body echoed back to the agent."""


__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "DEFAULT_VIEWPORT",
    "SESSION_CLOSE_TIMEOUT_SECS",
    "TIMEOUT_GRACE_MS",
    "DIAGNOSTICS_CAPACITY",
    "DEFAULT_CONSOLE_LIMIT",
    "MAX_TEXT_CHARS",
    "MAX_SCRIPT_RESULT_CHARS",
    "MAX_API_BODY_CHARS",
]
