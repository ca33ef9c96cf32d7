"""Pydantic schemas for OpenWeather responses, validated at the fetch boundary."""

import datetime
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from weather_mcp.errors import ProviderResponseError

ModelT = TypeVar("ModelT", bound=BaseModel)


class _ProviderModel(BaseModel):
    """Immutable provider record; unknown fields are ignored."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class ConditionInfo(_ProviderModel):
    """One entry of the provider's `weather` array."""
    id: int
    main: str = ""
    description: str
    icon: Optional[str] = None


class Precipitation(_ProviderModel):
    """Rain or snow volume (mm) over the last 1h / 3h."""
    one_hour: Optional[float] = Field(default=None, alias="1h")
    three_hour: Optional[float] = Field(default=None, alias="3h")


class Wind(_ProviderModel):
    speed: float
    deg: Optional[float] = None
    gust: Optional[float] = None


class Clouds(_ProviderModel):
    all: Optional[int] = None


class CurrentMain(_ProviderModel):
    temp: float
    feels_like: Optional[float] = None
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    pressure: Optional[int] = None
    humidity: Optional[int] = None


class CurrentSys(_ProviderModel):
    country: Optional[str] = None
    sunrise: Optional[int] = None
    sunset: Optional[int] = None


class CurrentWeather(_ProviderModel):
    """Response of the `/weather` endpoint."""
    name: str
    dt: int
    main: CurrentMain
    weather: list[ConditionInfo] = Field(min_length=1)
    wind: Wind
    sys: CurrentSys = CurrentSys()
    visibility: Optional[int] = None
    clouds: Clouds = Clouds()
    timezone: int = 0

    @property
    def condition(self) -> ConditionInfo:
        """Primary reported condition."""
        return self.weather[0]


class SampleMain(_ProviderModel):
    temp_min: float
    temp_max: float
    temp: Optional[float] = None
    humidity: Optional[int] = None


class RawSample(_ProviderModel):
    """One 3-hour forecast step of the `/forecast` endpoint."""
    dt: int
    main: SampleMain
    weather: list[ConditionInfo] = Field(min_length=1)
    wind: Wind
    rain: Optional[Precipitation] = None

    @property
    def timestamp(self) -> datetime.datetime:
        """Sample time as an aware UTC datetime."""
        return datetime.datetime.fromtimestamp(self.dt, tz=datetime.timezone.utc)

    @property
    def date_key(self) -> str:
        """UTC calendar date, ISO formatted (sorts chronologically)."""
        return self.timestamp.date().isoformat()

    @property
    def condition_code(self) -> int:
        return self.weather[0].id

    @property
    def condition_text(self) -> str:
        return self.weather[0].description

    @property
    def precipitation(self) -> float:
        """Rain volume for the step, 0.0 when the provider omits it."""
        if self.rain is None or self.rain.three_hour is None:
            return 0.0
        return self.rain.three_hour


class ForecastCity(_ProviderModel):
    name: str
    country: Optional[str] = None


class ForecastResponse(_ProviderModel):
    """Response of the `/forecast` endpoint (5 days, 3-hour steps)."""
    city: ForecastCity
    samples: list[RawSample] = Field(alias="list")


def parse_payload(model: type[ModelT], payload: Any, *, context: str) -> ModelT:
    """Validate a decoded JSON payload, raising ProviderResponseError on mismatch."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ProviderResponseError(
            f"Malformed {context} response from weather provider: {exc.error_count()} validation error(s)"
        ) from exc
