"""Error taxonomy shared by the fetcher, the dispatcher and the MCP adapter."""

from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData

# MCP convention for resources/read on an unknown URI.
RESOURCE_NOT_FOUND = -32002


class ConfigurationError(Exception):
    """Startup configuration is unusable (e.g. the API key is missing)."""


class LocationNotFoundError(Exception):
    """The weather provider does not know the requested location."""

    def __init__(self, location: str) -> None:
        super().__init__(f"Location not found: {location}")
        self.location = location


class WeatherToolError(Exception):
    """Base class for failures surfaced as JSON-RPC errors."""
    code: int = INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_error_data(self) -> ErrorData:
        """Return the protocol-level error payload."""
        return ErrorData(code=self.code, message=self.message)


class InvalidParamsError(WeatherToolError):
    """Tool arguments are missing/invalid, or the location is unknown."""
    code = INVALID_PARAMS


class UnknownToolError(WeatherToolError):
    """No tool with the requested name is registered."""
    code = METHOD_NOT_FOUND

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class ResourceNotFoundError(WeatherToolError):
    """No resource is published under the requested URI."""
    code = RESOURCE_NOT_FOUND

    def __init__(self, uri: str) -> None:
        super().__init__(f"Resource not found: {uri}")
        self.uri = uri


class ProviderResponseError(WeatherToolError):
    """The provider answered with a body that does not match the expected schema."""
    code = INTERNAL_ERROR
