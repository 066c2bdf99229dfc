"""Session layer: settings, the session manager, and the browser/HTTP sessions it owns."""

from .settings import ApiSettings, BrowserSettings, settings_overrides
from .manager import Session, SessionManager
from .driver import BrowserSession, make_browser_launcher
from .http import ApiSession, make_api_launcher

__all__ = [
    "ApiSettings",
    "BrowserSettings",
    "settings_overrides",
    "Session",
    "SessionManager",
    "BrowserSession",
    "make_browser_launcher",
    "ApiSession",
    "make_api_launcher",
]
