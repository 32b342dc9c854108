import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from src.domain.dto import CitiesResponse, ForecastRecord, WeatherRecord
from src.domain.errors import ErrorKind


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000/api"
WEATHER_TIMEOUT_SECONDS = 15.0
HEALTH_TIMEOUT_SECONDS = 10.0

STATUS_KINDS = {
    400: ErrorKind.INVALID_INPUT,
    404: ErrorKind.NOT_FOUND,
    408: ErrorKind.TIMEOUT,
    429: ErrorKind.RATE_LIMITED,
}


class ClientError(Exception):
    """A failed proxy call, already turned into a message fit for the user."""

    def __init__(self, kind: ErrorKind, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code


def _kind_from_body(body: Dict[str, Any], status_code: int) -> ErrorKind:
    try:
        return ErrorKind(body.get("kind"))
    except ValueError:
        return STATUS_KINDS.get(status_code, ErrorKind.UPSTREAM_ERROR)


def error_from_response(response: httpx.Response) -> ClientError:
    """Build a ClientError from a non-2xx proxy response.

    Prefers the JSON `message`, then `error`; a body that is not a JSON
    object gives a generic message built from the status code.
    """
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {"error": "Unknown error", "message": f"HTTP {response.status_code}"}

    message = body.get("message") or body.get("error") or f"Server error: {response.status_code}"
    return ClientError(_kind_from_body(body, response.status_code), message, response.status_code)


def validate_city_name(city_name: Any) -> str:
    if not isinstance(city_name, str) or not city_name.strip():
        raise ClientError(ErrorKind.INVALID_INPUT, "City name is required")
    return city_name.strip()


class WeatherApiClient:
    """Async wrapper around the proxy's HTTP endpoints.

    Every call either returns parsed records or raises ClientError; raw
    httpx or parsing exceptions never leave this class.
    """

    def __init__(
            self,
            base_url: str = DEFAULT_BASE_URL,
            http_client: Optional[httpx.AsyncClient] = None,
            weather_timeout: float = WEATHER_TIMEOUT_SECONDS,
            health_timeout: float = HEALTH_TIMEOUT_SECONDS) -> None:
        self.base_url = base_url.rstrip("/")
        self.weather_timeout = weather_timeout
        self.health_timeout = health_timeout
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(headers={"Content-Type": "application/json"})

    async def __aenter__(self) -> "WeatherApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    async def _get(self, path: str, timeout: float, timeout_message: str, unreachable_message: str) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            response = await asyncio.wait_for(self.http_client.get(url, timeout=timeout), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise ClientError(ErrorKind.TIMEOUT, timeout_message) from exc
        except httpx.TransportError as exc:
            raise ClientError(ErrorKind.UNREACHABLE, unreachable_message) from exc
        except httpx.RequestError as exc:
            raise ClientError(ErrorKind.UPSTREAM_ERROR, "Weather service returned an unreadable response") from exc
        return response

    async def _get_json(self, path: str, timeout_message: str, unreachable_message: str) -> Dict[str, Any]:
        response = await self._get(path, self.weather_timeout, timeout_message, unreachable_message)
        if not response.is_success:
            raise error_from_response(response)
        try:
            return response.json()
        except ValueError as exc:
            raise ClientError(ErrorKind.UPSTREAM_ERROR, "Weather service returned an unreadable response") from exc

    async def fetch_cities(self) -> List[WeatherRecord]:
        logger.info("Fetching weather for default cities...")
        try:
            data = await self._get_json(
                "/weather/cities",
                "Request timed out. Please check your internet connection.",
                "Unable to connect to weather service. Please make sure the backend server is running.",
            )
            cities = CitiesResponse.model_validate(data).cities
        except ClientError as exc:
            logger.error("Error fetching weather cities: %s", exc.message)
            raise
        except ValidationError as exc:
            logger.error("Unexpected cities payload: %s", exc)
            raise ClientError(ErrorKind.UPSTREAM_ERROR, "Failed to fetch weather data") from exc

        logger.info("Successfully fetched %d cities", len(cities))
        return cities

    async def search_city(self, city_name: Any) -> WeatherRecord:
        city = validate_city_name(city_name)
        logger.info('Searching weather for: "%s"', city)
        try:
            data = await self._get_json(
                f"/weather/search/{quote(city, safe='')}",
                "Search timed out. Please try again.",
                "Unable to connect to weather service. Please check if the backend server is running.",
            )
            record = WeatherRecord.model_validate(data)
        except ClientError as exc:
            logger.error("Error searching weather: %s", exc.message)
            raise
        except ValidationError as exc:
            logger.error("Unexpected search payload: %s", exc)
            raise ClientError(ErrorKind.UPSTREAM_ERROR, "Failed to search city weather") from exc

        logger.info("Successfully found weather for: %s, %s", record.city, record.country)
        return record

    async def fetch_forecast(self, city_name: Any) -> ForecastRecord:
        city = validate_city_name(city_name)
        logger.info('Fetching forecast for: "%s"', city)
        try:
            data = await self._get_json(
                f"/weather/forecast/{quote(city, safe='')}",
                "Forecast request timed out. Please try again.",
                "Unable to connect to weather service. Please check if the backend server is running.",
            )
            forecast = ForecastRecord.model_validate(data)
        except ClientError as exc:
            logger.error("Error fetching forecast: %s", exc.message)
            raise
        except ValidationError as exc:
            logger.error("Unexpected forecast payload: %s", exc)
            raise ClientError(ErrorKind.UPSTREAM_ERROR, "Failed to fetch weather forecast") from exc

        logger.info("Successfully fetched forecast for: %s", forecast.city)
        return forecast

    async def check_health(self) -> Dict[str, Any]:
        response = await self._get(
            "/health",
            self.health_timeout,
            "Health check timed out",
            "Backend server is not running. Please start the server on port 5000.",
        )
        if not response.is_success:
            raise ClientError(
                STATUS_KINDS.get(response.status_code, ErrorKind.UPSTREAM_ERROR),
                f"HTTP error! status: {response.status_code}",
                response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise ClientError(ErrorKind.UPSTREAM_ERROR, "Failed to check API health") from exc

        logger.info("API health check passed")
        return data

    async def test_connection(self) -> Dict[str, Any]:
        """Like `check_health`, but reports the outcome instead of raising."""
        try:
            await self.check_health()
        except ClientError as exc:
            logger.warning("API health check failed: %s", exc.message)
            return {"success": False, "message": exc.message}
        return {"success": True, "message": "Connection successful"}
