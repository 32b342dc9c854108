from typing import Optional

import httpx
from fastapi import Depends, Request

from src.infrastructure.config import Settings, settings
from src.infrastructure.openweather import create_http_client
from src.services.weather_service import WeatherService


_http_client: Optional[httpx.AsyncClient] = None


# Default implementations of injection
def get_settings(request: Request) -> Settings:
    """Provide the settings the app was created with as a dependency."""
    return getattr(request.app.state, "settings", settings)

async def get_http_client() -> httpx.AsyncClient:
    """Provide the shared provider HTTP client as a dependency.

    Created lazily on first use and reused until `close_http_client` runs.
    Runs on the event loop, not the threadpool, so concurrent first requests
    share one client.
    """
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = create_http_client()
    return _http_client

async def close_http_client() -> None:
    """Close the shared provider HTTP client, if one was created."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None

def get_weather_service(
    settings_dep: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> WeatherService:
    """
    Provide the weather service as a dependency.

    Args:
        settings_dep (Settings): Configuration with the provider key and defaults
        http_client (httpx.AsyncClient): Client used for provider calls
    """
    return WeatherService(settings_dep, http_client)
