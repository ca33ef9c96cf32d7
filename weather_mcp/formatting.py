"""Markdown renderers for tool results and the usage resource."""
from __future__ import annotations

import datetime as dt
import math
from typing import List, Optional, Sequence

from weather_mcp.config import Settings, UnitSystem
from weather_mcp.forecast_service import DaySummary, MAX_FORECAST_DAYS, DEFAULT_FORECAST_DAYS
from weather_mcp.models import CurrentWeather

COMPASS_POINTS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]


def compass_direction(degrees: float) -> str:
    """Map a meteorological bearing to an 8-point compass label."""
    return COMPASS_POINTS[int((degrees % 360) / 45 + 0.5) % 8]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (12.5 -> 13, -0.5 -> 0)."""
    return math.floor(value + 0.5)


def _place(name: str, country: Optional[str]) -> str:
    return f"{name}, {country}" if country else name


def _utc_clock(ts: int) -> str:
    return dt.datetime.fromtimestamp(ts, tz=dt.timezone.utc).strftime("%H:%M UTC")


def format_current_weather(weather: CurrentWeather, units: UnitSystem) -> str:
    """Render current conditions as markdown."""
    t = units.temperature_label
    main = weather.main
    lines: List[str] = [f"# Current Weather in {_place(weather.name, weather.sys.country)}", ""]

    temp_line = f"**Temperature**: {main.temp:.1f}{t}"
    if main.feels_like is not None:
        temp_line += f" (feels like {main.feels_like:.1f}{t})"
    lines.append(temp_line)
    lines.append(f"**Conditions**: {weather.condition.description}")
    if main.humidity is not None:
        lines.append(f"**Humidity**: {main.humidity}%")

    wind_line = f"**Wind**: {weather.wind.speed:.1f} {units.speed_label}"
    if weather.wind.deg is not None:
        wind_line += f" {compass_direction(weather.wind.deg)}"
    lines.append(wind_line)

    if main.pressure is not None:
        lines.append(f"**Pressure**: {main.pressure} hPa")
    if weather.visibility is not None:
        lines.append(f"**Visibility**: {weather.visibility / 1000:.1f} km")
    if weather.clouds.all is not None:
        lines.append(f"**Cloud cover**: {weather.clouds.all}%")
    if weather.sys.sunrise and weather.sys.sunset:
        lines.append(f"**Sunrise / Sunset**: {_utc_clock(weather.sys.sunrise)} / {_utc_clock(weather.sys.sunset)}")

    return "\n".join(lines)


def format_forecast(
    city: str,
    country: Optional[str],
    summaries: Sequence[DaySummary],
    units: UnitSystem,
) -> str:
    """Render per-day summaries as markdown.

    The precipitation line is omitted for days with no precipitation.
    """
    t = units.temperature_label
    lines: List[str] = [f"# {len(summaries)}-Day Forecast for {_place(city, country)}"]
    for day in summaries:
        lines.append("")
        lines.append(f"## {day.weekday_label()}")
        lines.append(f"**Temperature**: {round_half_up(day.temp_min)}{t} to {round_half_up(day.temp_max)}{t}")
        lines.append(f"**Conditions**: {day.condition_text}")
        lines.append(f"**Wind**: {day.avg_wind_speed:.1f} {units.speed_label}")
        if day.precipitation > 0:
            lines.append(f"**Precipitation**: {day.precipitation:.1f} mm")
    return "\n".join(lines)


def documentation_markdown(settings: Settings) -> str:
    """Usage guide served as the documentation resource."""
    units = settings.units
    return "\n".join([
        "# OpenWeather MCP Server",
        "",
        "Current conditions and short-range forecasts from the OpenWeather API.",
        "",
        "## Setup",
        "",
        "1. Create an API key at https://openweathermap.org/api.",
        "2. Export it before starting the server: `OPENWEATHER_API_KEY=<key>`.",
        "3. Optionally choose units with `OPENWEATHER_UNITS` (`metric`, `imperial` or `standard`).",
        "4. Run `python run_server.py` (stdio) or set `OPENWEATHER_TRANSPORT=http`.",
        "",
        "## Tools",
        "",
        "### get_current_weather",
        "- `location` (string, required): city name, optionally with country code, e.g. `London,UK`.",
        "",
        "### get_weather_forecast",
        "- `location` (string, required): city name, optionally with country code.",
        f"- `days` (number, optional): 1-{MAX_FORECAST_DAYS}, default {DEFAULT_FORECAST_DAYS}; "
        "values outside the range are clamped.",
        "",
        "## Caching",
        "",
        f"- Current weather is cached for {settings.current_ttl_seconds // 60} minutes.",
        f"- Forecasts are cached for {settings.forecast_ttl_seconds // 60} minutes.",
        "- Cache keys use the location exactly as given, so `Paris` and `paris` are cached separately.",
        "",
        "## Units",
        "",
        f"Active unit system: **{units.value}** (temperature {units.temperature_label}, "
        f"wind {units.speed_label}).",
    ])
