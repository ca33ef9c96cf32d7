"""Server configuration pulled from environment variables via pydantic."""
from enum import Enum
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from weather_mcp.errors import ConfigurationError
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class UnitSystem(str, Enum):
    """Unit systems understood by the OpenWeather API."""
    METRIC = "metric"
    IMPERIAL = "imperial"
    STANDARD = "standard"

    @property
    def temperature_label(self) -> str:
        """Suffix used when rendering temperatures."""
        return {
            UnitSystem.METRIC: "°C",
            UnitSystem.IMPERIAL: "°F",
            UnitSystem.STANDARD: "K",
        }[self]

    @property
    def speed_label(self) -> str:
        """Suffix used when rendering wind speeds."""
        return "mph" if self is UnitSystem.IMPERIAL else "m/s"


class Settings(BaseSettings):
    """Environment-driven configuration for the OpenWeather MCP server."""
    model_config = SettingsConfigDict(env_prefix="OPENWEATHER_", extra="ignore")

    api_key: str | None = None
    units: UnitSystem = UnitSystem.METRIC
    base_url: str = "https://api.openweathermap.org/data/2.5"
    request_timeout_seconds: float = 10.0
    current_ttl_seconds: int = 1800
    forecast_ttl_seconds: int = 3600
    transport: Literal["stdio", "http"] = "stdio"
    http_host: str = "127.0.0.1"
    http_port: int = 8000
    log_level: str = "INFO"

    @field_validator("units", mode="before")
    @classmethod
    def normalize_units(cls, v):
        """Accept unit names in any case; unknown names still fail validation."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")


def require_api_key(settings: Settings) -> str:
    """Return the configured API key or raise ConfigurationError."""
    key = (settings.api_key or "").strip()
    if not key:
        raise ConfigurationError("OPENWEATHER_API_KEY environment variable is required")
    return key


settings = Settings()


if __name__ == "__main__":
    logger.logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'api_key'})}")
