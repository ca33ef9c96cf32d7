"""Helpers for fetching current weather and forecasts from the OpenWeather API."""
from __future__ import annotations

from typing import Any

import requests

from weather_mcp.config import UnitSystem
from weather_mcp.errors import LocationNotFoundError, ProviderResponseError
from weather_mcp.models import CurrentWeather, ForecastResponse, parse_payload
from utils.logging_utils import get_tagged_logger, mask_url_secrets
logger = get_tagged_logger(__name__, tag='openweather_client')

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
DEFAULT_TIMEOUT_SECONDS = 10.0

session = requests.Session()


def _get_json(
    endpoint: str,
    location: str,
    units: UnitSystem,
    *,
    api_key: str,
    base_url: str,
    timeout: float,
) -> Any:
    """GET an OpenWeather endpoint and return its decoded JSON body."""
    params = {
        "q": location,
        "appid": api_key,
        "units": units.value,
    }
    url = f"{base_url.rstrip('/')}/{endpoint}"

    resp = session.get(url, params=params, timeout=timeout)
    logger.debug(
        "OpenWeather response",
        extra={"url": mask_url_secrets(getattr(resp, "url", url) or url), "status": resp.status_code},
    )
    if resp.status_code == 404:
        logger.info("OpenWeather does not know location", extra={"location": location})
        raise LocationNotFoundError(location)
    resp.raise_for_status()

    try:
        return resp.json()
    except ValueError as exc:
        raise ProviderResponseError(f"Weather provider returned a non-JSON {endpoint} response") from exc


def fetch_current_weather(
    location: str,
    units: UnitSystem = UnitSystem.METRIC,
    *,
    api_key: str,
    base_url: str = OPENWEATHER_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> CurrentWeather:
    """Fetch current conditions for a free-form location ("Paris", "Austin,US")."""
    logger.info("Fetching current weather", extra={"location": location, "units": units.value})
    data = _get_json("weather", location, units, api_key=api_key, base_url=base_url, timeout=timeout)
    return parse_payload(CurrentWeather, data, context="current weather")


def fetch_forecast(
    location: str,
    units: UnitSystem = UnitSystem.METRIC,
    *,
    api_key: str,
    base_url: str = OPENWEATHER_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> ForecastResponse:
    """Fetch the 5-day forecast in 3-hour steps, in chronological order."""
    logger.info("Fetching forecast", extra={"location": location, "units": units.value})
    data = _get_json("forecast", location, units, api_key=api_key, base_url=base_url, timeout=timeout)
    forecast = parse_payload(ForecastResponse, data, context="forecast")
    logger.debug("Parsed forecast samples", extra={"samples": len(forecast.samples)})
    return forecast
