"""OpenWeather MCP server: weather tools over the Model Context Protocol."""
