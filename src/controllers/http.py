from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from starlette.status import HTTP_200_OK

from src.domain.dto import CitiesResponse, ForecastRecord, HealthResponse, WeatherRecord
from src.infrastructure.config import Settings
from src.infrastructure.service_provider import get_settings, get_weather_service
from src.services.weather_service import WeatherService


router = APIRouter()

API_ENDPOINTS = {
    "health": "/api/health",
    "cities": "/api/weather/cities",
    "search": "/api/weather/search/:city",
    "forecast": "/api/weather/forecast/:city",
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/", status_code=HTTP_200_OK, summary="Service info", tags=["system"])
def index() -> dict:
    """Describes the service and lists its endpoints."""
    return {
        "message": "Weather App API Server",
        "version": "1.0.0",
        "endpoints": API_ENDPOINTS,
        "status": "running",
        "timestamp": _now_iso(),
    }


@router.get("/api/health", response_model=HealthResponse, summary="Health check", tags=["system"])
def health(settings_dep: Settings = Depends(get_settings)) -> HealthResponse:
    """Returns 200 OK while the process is up, even without an API key."""
    return HealthResponse(
        status="OK",
        message="Weather API server is running",
        timestamp=_now_iso(),
        api_key_configured=settings_dep.api_key_configured,
    )


@router.get(
    "/api/weather/cities",
    response_model=CitiesResponse,
    response_model_exclude_none=True,
    summary="Current weather for the default cities",
    tags=["weather"],
)
async def cities(service: WeatherService = Depends(get_weather_service)) -> CitiesResponse:
    """Cities whose provider call failed are silently left out."""
    return CitiesResponse(cities=await service.list_default_cities())


@router.get(
    "/api/weather/search/{city}",
    response_model=WeatherRecord,
    response_model_exclude_none=True,
    summary="Current weather for one city",
    tags=["weather"],
)
async def search(city: str, service: WeatherService = Depends(get_weather_service)) -> WeatherRecord:
    """Looks up a single city by name.

    - Empty name returns 400
    - Unknown city returns 404 with a spelling hint
    - Provider timeout returns 408, rate limit 429, anything else 500
    """
    return await service.search(city)


@router.get(
    "/api/weather/forecast/{city}",
    response_model=ForecastRecord,
    response_model_exclude_none=True,
    summary="24 hour forecast in 3 hour steps",
    tags=["weather"],
)
async def forecast(city: str, service: WeatherService = Depends(get_weather_service)) -> ForecastRecord:
    return await service.forecast(city)
