"""FastAPI application serving the MCP streamable-HTTP transport."""

import contextlib
from typing import Optional

from fastapi import FastAPI
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager

from weather_mcp import config
from weather_mcp.data_sources import build_data_source
from weather_mcp.dispatch import WeatherToolDispatcher
from weather_mcp.server import build_server
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="http")

MCP_PATH = "/mcp"


def create_app(
    dispatcher: Optional[WeatherToolDispatcher] = None,
    settings: Optional[config.Settings] = None,
) -> FastAPI:
    """Build the HTTP app; MCP clients connect to `/mcp/`."""
    settings = settings or config.settings
    if dispatcher is None:
        dispatcher = WeatherToolDispatcher.from_settings(settings, build_data_source(settings))

    session_manager = StreamableHTTPSessionManager(
        app=build_server(dispatcher),
        json_response=True,
        stateless=True,
    )

    @contextlib.asynccontextmanager
    async def lifespan(_app: FastAPI):
        async with session_manager.run():
            logger.info("MCP streamable-HTTP transport ready", extra={"path": MCP_PATH})
            yield

    app = FastAPI(title="OpenWeather MCP", lifespan=lifespan)

    async def handle_mcp(scope, receive, send) -> None:
        await session_manager.handle_request(scope, receive, send)

    app.mount(MCP_PATH, app=handle_mcp)

    @app.get("/healthz")
    def healthz():
        """Liveness probe with a glimpse of cache usage."""
        return {
            "status": "ok",
            "units": dispatcher.units.value,
            "cached_entries": len(dispatcher.cache),
        }

    return app
