"""Environment configuration and validation."""

import os
from pathlib import Path
from typing import Optional

from ..constants import DEFAULT_TIMEOUT_MS, DEFAULT_VIEWPORT, DIAGNOSTICS_CAPACITY

import logging
logger = logging.getLogger(__name__)


_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def _env_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise EnvironmentError(f"{name} must be a boolean (got {raw!r}).")


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise EnvironmentError(f"{name} must be an integer (got {raw!r}).") from None
    if value < minimum:
        raise EnvironmentError(f"{name} must be >= {minimum} (got {value}).")
    return value


def _env_str(name: str) -> Optional[str]:
    return (os.getenv(name) or "").strip() or None


def get_env_config() -> dict:
    """
    Read environment variables and validate them.

    All variables are optional:
                MCP_HEADLESS (default true)
                MCP_DEFAULT_TIMEOUT_MS (default 30000)
                MCP_VIEWPORT_WIDTH / MCP_VIEWPORT_HEIGHT (default 1280x720)
                MCP_USER_AGENT
                MCP_PROXY (applies to both the browser and the API client)
                CHROME_EXECUTABLE_PATH
                MCP_API_VERIFY_SSL (default true)
                MCP_DIAGNOSTICS_CAPACITY (default 1000)
                MCP_SCREENSHOT_DIR (default ~/Downloads)
                MCP_LOG_LEVEL (default INFO)

    Raises EnvironmentError naming the offending variable when a value cannot
    be parsed.
    """
    chrome_path = _env_str("CHROME_EXECUTABLE_PATH")
    if chrome_path and not Path(chrome_path).exists():
        logger.warning(f"CHROME_EXECUTABLE_PATH does not exist: {chrome_path}")

    screenshot_dir = _env_str("MCP_SCREENSHOT_DIR") or str(Path.home() / "Downloads")

    log_level = (_env_str("MCP_LOG_LEVEL") or "INFO").upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise EnvironmentError(f"MCP_LOG_LEVEL must be a logging level name (got {log_level!r}).")

    return {
        "headless": _env_bool("MCP_HEADLESS", True),
        "timeout_ms": _env_int("MCP_DEFAULT_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
        "width": _env_int("MCP_VIEWPORT_WIDTH", DEFAULT_VIEWPORT[0]),
        "height": _env_int("MCP_VIEWPORT_HEIGHT", DEFAULT_VIEWPORT[1]),
        "user_agent": _env_str("MCP_USER_AGENT"),
        "proxy": _env_str("MCP_PROXY"),
        "chrome_path": chrome_path,
        "verify_ssl": _env_bool("MCP_API_VERIFY_SSL", True),
        "diagnostics_capacity": _env_int("MCP_DIAGNOSTICS_CAPACITY", DIAGNOSTICS_CAPACITY),
        "screenshot_dir": screenshot_dir,
        "log_level": log_level,
    }
