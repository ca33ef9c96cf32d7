"""MCP protocol wiring for the weather dispatcher."""
from __future__ import annotations

import functools
from typing import Iterable, List, Optional

import anyio
import anyio.to_thread
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from pydantic import AnyUrl

from weather_mcp.dispatch import WeatherToolDispatcher
from weather_mcp.errors import WeatherToolError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="server")

SERVER_NAME = "openweather"


def _text_result(text: str, *, is_error: bool = False) -> types.ServerResult:
    return types.ServerResult(
        types.CallToolResult(
            content=[types.TextContent(type="text", text=text)],
            isError=is_error,
        )
    )


def build_server(dispatcher: WeatherToolDispatcher, name: str = SERVER_NAME) -> Server:
    """Create a low-level MCP server whose handlers delegate to `dispatcher`.

    Classified failures (unknown tool, invalid params, unknown resource,
    malformed provider data) become JSON-RPC errors. Anything else raised
    while calling a tool is returned as tool content flagged `isError`.
    """
    server: Server = Server(name)
    # One tool invocation at a time; created on first use inside the event loop.
    limiter: Optional[anyio.CapacityLimiter] = None

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return dispatcher.list_tools()

    @server.list_resources()
    async def list_resources() -> List[types.Resource]:
        return dispatcher.list_resources()

    @server.read_resource()
    async def read_resource(uri: AnyUrl) -> Iterable[ReadResourceContents]:
        try:
            text = dispatcher.read_resource(str(uri))
        except WeatherToolError as exc:
            logger.info("Resource lookup failed", extra={"uri": str(uri)})
            raise McpError(exc.to_error_data()) from exc
        return [ReadResourceContents(content=text, mime_type="text/markdown")]

    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        nonlocal limiter
        if limiter is None:
            limiter = anyio.CapacityLimiter(1)
        name = req.params.name
        arguments = req.params.arguments or {}
        try:
            # The provider fetch blocks; keep the event loop free while it waits.
            result = await anyio.to_thread.run_sync(
                functools.partial(dispatcher.call_tool, name, arguments),
                limiter=limiter,
            )
        except WeatherToolError as exc:
            logger.info("Tool call rejected", extra={"tool": name, "code": exc.code, "error": exc.message})
            raise McpError(exc.to_error_data()) from exc
        except Exception as exc:
            logger.warning("Tool call failed", extra={"tool": name, "error": str(exc)})
            return _text_result(f"Weather API error: {exc}", is_error=True)
        return _text_result(result.text, is_error=result.is_error)

    # Registered directly: @server.call_tool() converts every exception into
    # an isError result.
    server.request_handlers[types.CallToolRequest] = call_tool
    return server


async def run_stdio(server: Server) -> None:
    """Serve MCP over stdin/stdout until the client disconnects."""
    logger.info("Starting MCP server on stdio", extra={"server": server.name})
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
