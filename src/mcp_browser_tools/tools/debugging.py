"""Diagnostics tool: read (and optionally clear) buffered console and network events."""

import asyncio
from typing import Literal, Optional

from pydantic import Field

from .arguments import ToolArgs
from ..constants import DEFAULT_CONSOLE_LIMIT
from ..registry import tool

LogType = Literal["all", "error", "warning", "info", "debug", "log", "exception", "network", "api"]

# Sources are matched on these types instead of levels
_SOURCE_TYPES = {
    "exception": ("javascript",),
    "network": ("network",),
    "api": ("api",),
}


class ConsoleLogsArgs(ToolArgs):
    type: LogType = Field(default="all", description="Only entries of this level or source")
    search: Optional[str] = Field(default=None, description="Only entries whose message contains this text (case-insensitive)")
    limit: int = Field(default=DEFAULT_CONSOLE_LIMIT, ge=1, le=10_000, description="Return at most this many of the newest entries")
    clear: bool = Field(default=False, description="Clear the buffer after reading")


def _matches(entry, log_type: str, search: Optional[str]) -> bool:
    if log_type in _SOURCE_TYPES:
        if entry.source not in _SOURCE_TYPES[log_type]:
            return False
    elif log_type != "all":
        wanted = "info" if log_type == "log" else log_type
        if entry.level.lower() != wanted:
            return False
    if search and search.lower() not in entry.message.lower():
        return False
    return True


async def _pull_browser_console(ctx) -> None:
    browser = ctx.sessions.get("browser")
    session = browser.current if browser is not None else None
    collect = getattr(session, "collect_console", None)
    if collect is not None and not getattr(session, "busy", False):
        await asyncio.to_thread(collect)


@tool("console_logs", ConsoleLogsArgs)
async def console_logs(args: ConsoleLogsArgs, ctx):
    """Retrieve console logs, network events and API request records captured so far."""
    await _pull_browser_console(ctx)
    dropped = ctx.diagnostics.dropped
    entries = [e for e in ctx.diagnostics.snapshot() if _matches(e, args.type, args.search)]
    entries = entries[-args.limit:]
    if args.clear:
        ctx.diagnostics.clear()

    if not entries:
        return "No console logs matching the criteria"
    lines = [e.format() for e in entries]
    header = f"Retrieved {len(entries)} console log(s)"
    if dropped:
        header += f" ({dropped} older entries were dropped)"
    return header + ":\n" + "\n".join(lines)


__all__ = ["console_logs"]
