"""Interfaces and helpers for weather data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from weather_mcp.config import UnitSystem
from weather_mcp.models import CurrentWeather, ForecastResponse


class WeatherDataSource(Protocol):
    """Interface for anything that can provide current weather and forecasts.

    Implementations raise `LocationNotFoundError` when the provider does not
    know the location; any other failure propagates as-is.
    """

    def fetch_current(self, location: str, units: UnitSystem) -> CurrentWeather:
        """Return current conditions for `location`."""
        ...

    def fetch_forecast(self, location: str, units: UnitSystem) -> ForecastResponse:
        """Return the 5-day / 3-hour forecast for `location`."""
        ...


@dataclass
class CallableWeatherDataSource(WeatherDataSource):
    """Wrap two callables so fetchers can be swapped (real API, fakes in tests)."""

    current: Callable[[str, UnitSystem], CurrentWeather]
    forecast: Callable[[str, UnitSystem], ForecastResponse]

    def fetch_current(self, location: str, units: UnitSystem) -> CurrentWeather:
        """Delegate to the configured current-weather callable."""
        return self.current(location, units)

    def fetch_forecast(self, location: str, units: UnitSystem) -> ForecastResponse:
        """Delegate to the configured forecast callable."""
        return self.forecast(location, units)
