"""Factory helpers for building the weather data source at startup."""

from __future__ import annotations

from functools import partial

from weather_mcp import config
from weather_mcp.data_sources.base import CallableWeatherDataSource, WeatherDataSource
from weather_mcp.data_sources.openweather_client import fetch_current_weather, fetch_forecast
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")


def build_data_source(settings: config.Settings | None = None) -> WeatherDataSource:
    """Bind credentials and endpoint settings into an OpenWeather data source."""
    settings = settings or config.settings
    api_key = config.require_api_key(settings)

    logger.info("Using OpenWeather data source", extra={"base_url": settings.base_url})
    options = {
        "api_key": api_key,
        "base_url": settings.base_url,
        "timeout": settings.request_timeout_seconds,
    }
    return CallableWeatherDataSource(
        current=partial(fetch_current_weather, **options),
        forecast=partial(fetch_forecast, **options),
    )
