"""Tool catalog and request dispatch: validation, caching, fetch and render."""
from __future__ import annotations

import functools
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from mcp import types

from weather_mcp.cache import TTLCache
from weather_mcp.config import Settings, UnitSystem
from weather_mcp.data_sources.base import WeatherDataSource
from weather_mcp.errors import InvalidParamsError, LocationNotFoundError, ResourceNotFoundError, UnknownToolError
from weather_mcp.forecast_service import (
    DEFAULT_FORECAST_DAYS,
    MAX_FORECAST_DAYS,
    MIN_FORECAST_DAYS,
    aggregate_forecast,
    clamp_days,
)
from weather_mcp.formatting import documentation_markdown, format_current_weather, format_forecast
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="dispatch")

CURRENT_WEATHER_TOOL = "get_current_weather"
FORECAST_TOOL = "get_weather_forecast"
DOCS_URI = "weather://docs/usage"

DEFAULT_CURRENT_TTL_SECONDS = 1800
DEFAULT_FORECAST_TTL_SECONDS = 3600


@dataclass(frozen=True)
class ToolResult:
    """Outcome of a tool call; successful results are what the cache stores."""
    text: str
    is_error: bool = False


def validate_location(arguments: Mapping[str, Any]) -> str:
    """Return the location exactly as supplied, or raise InvalidParamsError.

    The value must be a string that is non-empty after trimming; the
    untrimmed original is returned so cache keys and provider queries see
    what the caller sent.
    """
    location = arguments.get("location")
    if not isinstance(location, str) or not location.strip():
        raise InvalidParamsError("Location parameter is required and must be a non-empty string")
    return location


def parse_days(value: Any) -> int:
    """Interpret the `days` argument; unparseable or missing -> default, then clamp."""
    days: Optional[int] = None
    if isinstance(value, bool) or value is None:
        days = None
    elif isinstance(value, int):
        days = value
    elif isinstance(value, float):
        days = int(value) if math.isfinite(value) else None
    elif isinstance(value, str):
        text = value.strip()
        try:
            days = int(text)
        except ValueError:
            try:
                as_float = float(text)
            except ValueError:
                as_float = math.nan
            days = int(as_float) if math.isfinite(as_float) else None
    if days is None:
        days = DEFAULT_FORECAST_DAYS
    return clamp_days(days)


def current_cache_key(location: str) -> str:
    return f"current:{location}"


def forecast_cache_key(location: str, days: int) -> str:
    return f"forecast:{location}:{days}"


TOOLS: List[types.Tool] = [
    types.Tool(
        name=CURRENT_WEATHER_TOOL,
        description="Get current weather conditions for a location",
        inputSchema={
            "type": "object",
            "properties": {
                "location": {
                    "type": "string",
                    "description": "City name, optionally with country code (e.g. 'London,UK')",
                },
            },
            "required": ["location"],
        },
    ),
    types.Tool(
        name=FORECAST_TOOL,
        description=f"Get a {MAX_FORECAST_DAYS}-day forecast summarized per day for a location",
        inputSchema={
            "type": "object",
            "properties": {
                "location": {
                    "type": "string",
                    "description": "City name, optionally with country code (e.g. 'London,UK')",
                },
                "days": {
                    "type": "number",
                    "description": f"Number of days ({MIN_FORECAST_DAYS}-{MAX_FORECAST_DAYS})",
                    "minimum": MIN_FORECAST_DAYS,
                    "maximum": MAX_FORECAST_DAYS,
                    "default": DEFAULT_FORECAST_DAYS,
                },
            },
            "required": ["location"],
        },
    ),
]


class WeatherToolDispatcher:
    """Route tool calls and resource reads to the weather data source.

    The cache is injected so its lifetime is owned by whoever builds the
    dispatcher (the process, or a test).
    """

    def __init__(
        self,
        data_source: WeatherDataSource,
        cache: TTLCache,
        *,
        units: UnitSystem = UnitSystem.METRIC,
        current_ttl_seconds: int = DEFAULT_CURRENT_TTL_SECONDS,
        forecast_ttl_seconds: int = DEFAULT_FORECAST_TTL_SECONDS,
        docs: Callable[[], str] | None = None,
    ) -> None:
        self.data_source = data_source
        self.cache = cache
        self.units = units
        self.current_ttl_seconds = current_ttl_seconds
        self.forecast_ttl_seconds = forecast_ttl_seconds
        if docs is None:
            # Built without reading the environment; only the fields below are rendered.
            doc_settings = Settings.model_construct(
                units=units,
                current_ttl_seconds=current_ttl_seconds,
                forecast_ttl_seconds=forecast_ttl_seconds,
            )
            docs = functools.partial(documentation_markdown, doc_settings)
        self._docs = docs
        self._handlers: Dict[str, Callable[[Mapping[str, Any]], ToolResult]] = {
            CURRENT_WEATHER_TOOL: self._current_weather,
            FORECAST_TOOL: self._forecast,
        }

    @classmethod
    def from_settings(cls, settings: Settings, data_source: WeatherDataSource,
                      cache: TTLCache | None = None) -> "WeatherToolDispatcher":
        """Build a dispatcher wired to the configured units and TTLs."""
        return cls(
            data_source,
            cache if cache is not None else TTLCache(),
            units=settings.units,
            current_ttl_seconds=settings.current_ttl_seconds,
            forecast_ttl_seconds=settings.forecast_ttl_seconds,
            docs=functools.partial(documentation_markdown, settings),
        )

    # -- catalog -------------------------------------------------------------

    def list_tools(self) -> List[types.Tool]:
        return list(TOOLS)

    def list_resources(self) -> List[types.Resource]:
        return [
            types.Resource(
                uri=DOCS_URI,
                name="OpenWeather MCP usage",
                description="Setup and usage guide for the weather tools",
                mimeType="text/markdown",
            )
        ]

    def read_resource(self, uri: str) -> str:
        """Return the usage guide; it is rendered on every read."""
        if str(uri) != DOCS_URI:
            raise ResourceNotFoundError(str(uri))
        return self._docs()

    # -- tools ---------------------------------------------------------------

    def call_tool(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        """Run a tool by name.

        Raises UnknownToolError before looking at arguments, InvalidParamsError
        for bad input or unknown locations. Other data source failures
        propagate unchanged.
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownToolError(name)
        return handler(arguments or {})

    def _cached(self, key: str, ttl_seconds: int, produce: Callable[[], str]) -> ToolResult:
        """Return the cached result for `key` or produce, store and return it."""
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit", extra={"key": key})
            return cached

        logger.debug("Cache miss", extra={"key": key})
        result = ToolResult(text=produce())
        self.cache.set(key, result, ttl_seconds)
        return result

    def _current_weather(self, arguments: Mapping[str, Any]) -> ToolResult:
        location = validate_location(arguments)

        def produce() -> str:
            weather = self._fetch(self.data_source.fetch_current, location)
            return format_current_weather(weather, self.units)

        return self._cached(current_cache_key(location), self.current_ttl_seconds, produce)

    def _forecast(self, arguments: Mapping[str, Any]) -> ToolResult:
        location = validate_location(arguments)
        days = parse_days(arguments.get("days"))

        def produce() -> str:
            forecast = self._fetch(self.data_source.fetch_forecast, location)
            summaries = aggregate_forecast(forecast.samples, days)
            return format_forecast(forecast.city.name, forecast.city.country, summaries, self.units)

        return self._cached(forecast_cache_key(location, days), self.forecast_ttl_seconds, produce)

    def _fetch(self, fetch: Callable[[str, UnitSystem], Any], location: str) -> Any:
        try:
            return fetch(location, self.units)
        except LocationNotFoundError as exc:
            raise InvalidParamsError(f"Location not found: {location}") from exc
