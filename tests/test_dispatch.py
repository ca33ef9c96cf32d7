import os
import unittest
from unittest import mock

import requests

from weather_mcp.cache import TTLCache
from weather_mcp.config import UnitSystem
from weather_mcp.data_sources import CallableWeatherDataSource
from weather_mcp.dispatch import (
    CURRENT_WEATHER_TOOL,
    DOCS_URI,
    FORECAST_TOOL,
    ToolResult,
    WeatherToolDispatcher,
    parse_days,
)
from weather_mcp.errors import InvalidParamsError, LocationNotFoundError, ResourceNotFoundError, UnknownToolError
from weather_mcp.models import CurrentWeather, ForecastResponse

DAY1 = 1704067200  # 2024-01-01T00:00:00Z
HOUR = 3600


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _current_payload(name="London"):
    return CurrentWeather.model_validate({
        "name": name,
        "dt": DAY1 + 12 * HOUR,
        "main": {"temp": 11.3, "feels_like": 10.1, "pressure": 1012, "humidity": 81},
        "weather": [{"id": 500, "main": "Rain", "description": "light rain"}],
        "wind": {"speed": 4.1, "deg": 230},
        "sys": {"country": "GB"},
    })


def _forecast_payload(days=2):
    samples = []
    for d in range(days):
        for step in range(8):
            samples.append({
                "dt": DAY1 + d * 86400 + step * 3 * HOUR,
                "main": {"temp_min": 5 + d, "temp_max": 10 + d + step * 0.5},
                "weather": [{"id": 800, "main": "Clear", "description": "clear sky"}],
                "wind": {"speed": 3.0},
            })
    return ForecastResponse.model_validate({"city": {"name": "London", "country": "GB"}, "list": samples})


class FakeSource:
    """Counts provider calls and lets tests choose what each call does."""

    def __init__(self, current=None, forecast=None):
        self.calls = []
        self._current = current or (lambda loc: _current_payload(loc))
        self._forecast = forecast or (lambda loc: _forecast_payload())

    def data_source(self):
        def current(location, units):
            self.calls.append(("current", location, units))
            return self._current(location)

        def forecast(location, units):
            self.calls.append(("forecast", location, units))
            return self._forecast(location)

        return CallableWeatherDataSource(current=current, forecast=forecast)


class TestParseDays(unittest.TestCase):
    def test_clamps_out_of_range(self):
        self.assertEqual(parse_days(0), 1)
        self.assertEqual(parse_days(-3), 1)
        self.assertEqual(parse_days(10), 5)
        self.assertEqual(parse_days("-3"), 1)

    def test_defaults_when_missing_or_unparseable(self):
        for value in (None, "abc", "", True, [], {}, float("nan")):
            self.assertEqual(parse_days(value), 3, value)

    def test_accepts_numbers_and_numeric_strings(self):
        self.assertEqual(parse_days(4), 4)
        self.assertEqual(parse_days(2.7), 2)
        self.assertEqual(parse_days("4"), 4)
        self.assertEqual(parse_days(" 2 "), 2)
        self.assertEqual(parse_days("2.9"), 2)


class TestDispatcher(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = TTLCache(clock=self.clock)
        self.source = FakeSource()
        self.dispatcher = WeatherToolDispatcher(self.source.data_source(), self.cache, units=UnitSystem.METRIC)

    def test_current_weather_is_cached(self):
        first = self.dispatcher.call_tool(CURRENT_WEATHER_TOOL, {"location": "London"})
        second = self.dispatcher.call_tool(CURRENT_WEATHER_TOOL, {"location": "London"})

        self.assertIsInstance(first, ToolResult)
        self.assertFalse(first.is_error)
        self.assertIn("# Current Weather in London, GB", first.text)
        self.assertEqual(first.text, second.text)
        self.assertEqual(len(self.source.calls), 1)
        self.assertEqual(self.source.calls[0], ("current", "London", UnitSystem.METRIC))

    def test_forecast_is_cached_per_day_count(self):
        a = self.dispatcher.call_tool(FORECAST_TOOL, {"location": "London", "days": 2})
        b = self.dispatcher.call_tool(FORECAST_TOOL, {"location": "London", "days": "2"})
        self.assertEqual(a, b)
        self.assertEqual(len(self.source.calls), 1)

        self.dispatcher.call_tool(FORECAST_TOOL, {"location": "London", "days": 1})
        self.assertEqual(len(self.source.calls), 2)

    def test_location_case_is_not_normalized_for_cache(self):
        self.dispatcher.call_tool(CURRENT_WEATHER_TOOL, {"location": "Paris"})
        self.dispatcher.call_tool(CURRENT_WEATHER_TOOL, {"location": "paris"})
        self.assertEqual([c[1] for c in self.source.calls], ["Paris", "paris"])

    def test_forecast_defaults_to_three_days_and_clamps(self):
        self.source._forecast = lambda loc: _forecast_payload(days=6)

        default = self.dispatcher.call_tool(FORECAST_TOOL, {"location": "London"})
        self.assertTrue(default.text.startswith("# 3-Day Forecast for London, GB"))

        high = self.dispatcher.call_tool(FORECAST_TOOL, {"location": "London", "days": 10})
        self.assertTrue(high.text.startswith("# 5-Day Forecast"))

        low = self.dispatcher.call_tool(FORECAST_TOOL, {"location": "London", "days": 0})
        self.assertTrue(low.text.startswith("# 1-Day Forecast"))
        self.assertIn("forecast:London:1", self.cache)
        self.assertIn("forecast:London:5", self.cache)

    def test_forecast_returns_only_available_days(self):
        result = self.dispatcher.call_tool(FORECAST_TOOL, {"location": "London", "days": 5})
        self.assertTrue(result.text.startswith("# 2-Day Forecast"))
        self.assertEqual(result.text.count("\n## "), 2)

    def test_invalid_location_never_fetches(self):
        for args in ({}, {"location": ""}, {"location": "   \t"}, {"location": 42}, {"location": None}):
            for tool in (CURRENT_WEATHER_TOOL, FORECAST_TOOL):
                with self.assertRaises(InvalidParamsError):
                    self.dispatcher.call_tool(tool, args)
        self.assertEqual(self.source.calls, [])
        self.assertEqual(len(self.cache), 0)

    def test_location_is_passed_through_untrimmed(self):
        self.dispatcher.call_tool(CURRENT_WEATHER_TOOL, {"location": " Paris "})
        self.assertEqual(self.source.calls[0][1], " Paris ")
        self.assertIn("current: Paris ", self.cache)

    def test_unknown_tool(self):
        with self.assertRaises(UnknownToolError):
            self.dispatcher.call_tool("foo", {"location": "London"})
        with self.assertRaises(UnknownToolError):
            self.dispatcher.call_tool("foo", None)
        self.assertEqual(self.source.calls, [])
        self.assertEqual(len(self.cache), 0)

    def test_location_not_found_becomes_invalid_params(self):
        def not_found(loc):
            raise LocationNotFoundError(loc)

        self.source._current = not_found
        with self.assertRaises(InvalidParamsError) as ctx:
            self.dispatcher.call_tool(CURRENT_WEATHER_TOOL, {"location": "Atlantis"})
        self.assertIn("Atlantis", str(ctx.exception))

        # failures are not cached
        with self.assertRaises(InvalidParamsError):
            self.dispatcher.call_tool(CURRENT_WEATHER_TOOL, {"location": "Atlantis"})
        self.assertEqual(len(self.source.calls), 2)

    def test_other_fetch_errors_propagate_unchanged(self):
        boom = requests.ConnectionError("connection refused")

        def fail(loc):
            raise boom

        self.source._forecast = fail
        with self.assertRaises(requests.ConnectionError) as ctx:
            self.dispatcher.call_tool(FORECAST_TOOL, {"location": "London"})
        self.assertIs(ctx.exception, boom)
        self.assertEqual(len(self.cache), 0)

    def test_entries_expire_per_ttl_class(self):
        self.dispatcher.call_tool(CURRENT_WEATHER_TOOL, {"location": "London"})
        self.dispatcher.call_tool(FORECAST_TOOL, {"location": "London"})
        self.assertEqual(len(self.source.calls), 2)

        self.clock.now = 1800
        self.dispatcher.call_tool(CURRENT_WEATHER_TOOL, {"location": "London"})
        self.dispatcher.call_tool(FORECAST_TOOL, {"location": "London"})
        self.assertEqual([c[0] for c in self.source.calls], ["current", "forecast", "current"])

        self.clock.now = 3600
        self.dispatcher.call_tool(FORECAST_TOOL, {"location": "London"})
        self.assertEqual(len(self.source.calls), 4)

    def test_list_tools(self):
        tools = {t.name: t for t in self.dispatcher.list_tools()}
        self.assertEqual(set(tools), {CURRENT_WEATHER_TOOL, FORECAST_TOOL})
        self.assertEqual(tools[CURRENT_WEATHER_TOOL].inputSchema["required"], ["location"])
        self.assertEqual(tools[FORECAST_TOOL].inputSchema["properties"]["days"]["default"], 3)

    def test_documentation_resource(self):
        (resource,) = self.dispatcher.list_resources()
        self.assertEqual(str(resource.uri), DOCS_URI)

        text = self.dispatcher.read_resource(DOCS_URI)
        self.assertIn("get_weather_forecast", text)
        self.assertIn("OPENWEATHER_API_KEY", text)
        self.assertEqual(len(self.cache), 0)

    def test_documentation_ignores_malformed_environment(self):
        with mock.patch.dict(os.environ, {"OPENWEATHER_HTTP_PORT": "abc", "OPENWEATHER_UNITS": "kelvin"}):
            text = self.dispatcher.read_resource(DOCS_URI)
        self.assertIn("Active unit system: **metric**", text)
        self.assertIn("Current weather is cached for 30 minutes", text)

    def test_unknown_resource(self):
        with self.assertRaises(ResourceNotFoundError):
            self.dispatcher.read_resource("weather://docs/other")


if __name__ == "__main__":
    unittest.main()
