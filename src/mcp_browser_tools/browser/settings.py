"""Session settings: process defaults merged with per-call overrides."""

import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Optional, Tuple

from ..constants import DEFAULT_TIMEOUT_MS, DEFAULT_VIEWPORT


@dataclass(frozen=True)
class BrowserSettings:
    headless: bool = True
    width: int = DEFAULT_VIEWPORT[0]
    height: int = DEFAULT_VIEWPORT[1]
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    user_agent: Optional[str] = None
    proxy: Optional[str] = None
    chrome_path: Optional[str] = None

    # Fields baked into the launched process. A call asking for a different
    # value than the live session has forces a relaunch; the rest (window
    # size, timeouts) can be applied to a live session.
    relaunch_fields: ClassVar[Tuple[str, ...]] = ("headless", "user_agent", "proxy", "chrome_path")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "BrowserSettings":
        return cls(
            headless=bool(config.get("headless", True)),
            width=int(config.get("width") or DEFAULT_VIEWPORT[0]),
            height=int(config.get("height") or DEFAULT_VIEWPORT[1]),
            timeout_ms=int(config.get("timeout_ms") or DEFAULT_TIMEOUT_MS),
            user_agent=config.get("user_agent"),
            proxy=config.get("proxy"),
            chrome_path=config.get("chrome_path"),
        )


@dataclass(frozen=True)
class ApiSettings:
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    user_agent: Optional[str] = None
    proxy: Optional[str] = None
    verify_ssl: bool = True

    relaunch_fields: ClassVar[Tuple[str, ...]] = ("user_agent", "proxy", "verify_ssl")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ApiSettings":
        return cls(
            timeout_ms=int(config.get("timeout_ms") or DEFAULT_TIMEOUT_MS),
            user_agent=config.get("user_agent"),
            proxy=config.get("proxy"),
            verify_ssl=bool(config.get("verify_ssl", True)),
        )


def settings_overrides(settings_cls, arguments: Any) -> dict:
    """
    Pick the session options a tool call explicitly asked for.

    `arguments` may be a pydantic model or a plain mapping. Only names that
    are fields of `settings_cls` and carry a non-None value are returned.
    """
    if arguments is None:
        return {}
    if hasattr(arguments, "model_dump"):
        arguments = arguments.model_dump()
    names = {f.name for f in dataclasses.fields(settings_cls)}
    return {k: v for k, v in dict(arguments).items() if k in names and v is not None}


def merge_settings(defaults, overrides: Mapping[str, Any]):
    """Per-call overrides win over process defaults."""
    if not overrides:
        return defaults
    return dataclasses.replace(defaults, **overrides)


def is_compatible(current, overrides: Mapping[str, Any]) -> bool:
    """True when every relaunch-relevant override matches the live session's settings."""
    for name in current.relaunch_fields:
        if name in overrides and overrides[name] != getattr(current, name):
            return False
    return True


__all__ = [
    "BrowserSettings",
    "ApiSettings",
    "settings_overrides",
    "merge_settings",
    "is_compatible",
]
