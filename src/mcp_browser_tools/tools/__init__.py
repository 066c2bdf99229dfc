# mcp_browser_tools/tools/__init__.py
"""
Tool implementations.

Importing this package registers every tool in `default_registry`. Each
module holds plain async operations `op(args, ctx)` plus their pydantic
argument models:

- navigation:   navigate, go_back, go_forward, resize, custom_user_agent, close
- interaction:  click, iframe_click, fill, iframe_fill, select, hover, drag,
                press_key, upload_file, click_and_switch_tab
- extraction:   get_visible_text, get_visible_html, evaluate
- screenshots:  screenshot, save_as_pdf
- api:          api_get, api_post, api_put, api_patch, api_delete
- debugging:    console_logs
"""

from . import api, debugging, extraction, interaction, navigation, screenshots
from ..registry import ToolRegistry, default_registry


def build_registry() -> ToolRegistry:
    """The registry holding the full tool catalog."""
    return default_registry


__all__ = [
    "api",
    "debugging",
    "extraction",
    "interaction",
    "navigation",
    "screenshots",
    "build_registry",
]
