# mcp_browser_tools/server.py
"""
MCP transport adapter.

Lists the registry's catalog as MCP tools and forwards tools/call requests to
the Dispatcher. Every envelope is returned as a CallToolResult: error
envelopes set isError=true and lead with their error kind, and any extra
content items travel along with the message.
"""

from typing import Any, Dict, List, Optional

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .context import ServerContext, get_context
from .dispatcher import Dispatcher
from .envelope import BinaryContent, ResultEnvelope, TextContent
from .registry import ToolRegistry
from .tools import build_registry

import logging
logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-browser-tools"
SERVER_VERSION = "0.3.0"


def to_mcp_content(envelope: ResultEnvelope) -> List[Any]:
    blocks: List[Any] = []
    for item in envelope.content:
        if isinstance(item, TextContent):
            blocks.append(types.TextContent(type="text", text=item.text))
        elif isinstance(item, BinaryContent) and item.mime_type.startswith("image/"):
            blocks.append(types.ImageContent(type="image", data=item.to_base64(), mimeType=item.mime_type))
        elif isinstance(item, BinaryContent):
            blocks.append(
                types.EmbeddedResource(
                    type="resource",
                    resource=types.BlobResourceContents(
                        uri=f"file:///{item.name or 'attachment'}",
                        mimeType=item.mime_type,
                        blob=item.to_base64(),
                    ),
                )
            )
    return blocks


def to_call_result(envelope: ResultEnvelope) -> types.CallToolResult:
    content = to_mcp_content(envelope)
    if envelope.is_error and content and isinstance(content[0], types.TextContent):
        content[0] = types.TextContent(type="text", text=f"[{envelope.error_kind.value}] {content[0].text}")
    return types.CallToolResult(content=content, isError=envelope.is_error)


def build_server(
    context: Optional[ServerContext] = None,
    registry: Optional[ToolRegistry] = None,
) -> Server:
    context = context or get_context()
    registry = registry or build_registry()
    dispatcher = Dispatcher(registry, context)
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return [
            types.Tool(name=spec.name, description=spec.description, inputSchema=spec.input_schema())
            for spec in registry.specs()
        ]

    # Arguments are validated by the dispatcher so failures come back as InvalidArguments
    @server.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        envelope = await dispatcher.call(name, arguments or {})
        return to_call_result(envelope)

    return server


async def serve(context: Optional[ServerContext] = None) -> None:
    """Run the MCP server over stdio until the client disconnects."""
    context = context or get_context()
    server = build_server(context)
    try:
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=SERVER_VERSION,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                ),
            )
    finally:
        logger.info("Shutting down: closing sessions")
        await context.shutdown()


__all__ = ["to_mcp_content", "to_call_result", "build_server", "serve"]
