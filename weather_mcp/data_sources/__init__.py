"""Weather data sources (the OpenWeather fetcher and its test seams)."""

from .base import CallableWeatherDataSource, WeatherDataSource
from .factory import build_data_source
from .openweather_client import fetch_current_weather, fetch_forecast

__all__ = [
    "build_data_source",
    "WeatherDataSource",
    "CallableWeatherDataSource",
    "fetch_current_weather",
    "fetch_forecast",
]
