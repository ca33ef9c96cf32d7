import sys

import anyio
import uvicorn

from weather_mcp.config import Settings, require_api_key, settings
from weather_mcp.data_sources import build_data_source
from weather_mcp.dispatch import WeatherToolDispatcher
from weather_mcp.errors import ConfigurationError
from weather_mcp.main import create_app
from weather_mcp.server import build_server, run_stdio
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


def preflight(cfg: Settings) -> None:
    """
    Refuse to start without an OpenWeather API key.

    Exits with status 1 before any request is served.
    """
    try:
        require_api_key(cfg)
    except ConfigurationError as exc:
        logger.error(str(exc))
        sys.exit(1)


def main(cfg: Settings = settings) -> None:
    """Start the server on the configured transport (stdio or http)."""
    # stdout is the JSON-RPC channel on the stdio transport.
    setup_logging(level=cfg.log_level, stream_stdout=cfg.transport == "http")
    preflight(cfg)
    logger.info("Starting OpenWeather MCP server", extra={"transport": cfg.transport, "units": cfg.units.value})

    if cfg.transport == "http":
        uvicorn.run(
            create_app(settings=cfg),
            host=cfg.http_host,
            port=cfg.http_port,
            reload=False,
        )
        return

    dispatcher = WeatherToolDispatcher.from_settings(cfg, build_data_source(cfg))
    anyio.run(run_stdio, build_server(dispatcher))


if __name__ == "__main__":
    main()
