import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

import httpx
from pydantic import ValidationError

from src.domain.dto import ForecastRecord, WeatherRecord
from src.domain.errors import (
    AuthenticationFailed,
    InvalidInput,
    NetworkError,
    RateLimited,
    UpstreamError,
    UpstreamTimeout,
    WeatherServiceError,
    city_not_found,
    missing_api_key,
)
from src.infrastructure.config import Settings
from src.infrastructure.openweather import fetch_provider_json, provider_message
from src.metrics.metrics import default_cities_returned, observe_upstream_call, record_upstream_failure
from src.services.normalizer import normalize_forecast, normalize_weather


logger = logging.getLogger(__name__)

Fetcher = Callable[[httpx.AsyncClient, str, Dict[str, Any], float], Awaitable[Tuple[Dict[str, Any], int]]]


def validate_city(city: Optional[str]) -> str:
    """Return the trimmed city name or raise InvalidInput."""
    if not isinstance(city, str) or not city.strip():
        raise InvalidInput("City name is required and cannot be empty")
    return city.strip()


class WeatherService:
    """Proxies OpenWeatherMap and reshapes its answers into flat records.

    Every provider failure leaves this class as a WeatherServiceError subclass;
    the HTTP layer only has to render it.
    """

    def __init__(
            self,
            settings: Settings,
            http_client: httpx.AsyncClient,
            fetcher: Fetcher = fetch_provider_json) -> None:
        self.settings = settings
        self.http_client = http_client
        self.fetcher = fetcher

    def _require_api_key(self) -> str:
        if not self.settings.api_key_configured:
            logger.error("OPENWEATHER_API_KEY not found in environment variables")
            raise missing_api_key()
        return self.settings.openweather_api_key

    async def _call(self, endpoint: str, city: str, api_key: str) -> Dict[str, Any]:
        """Call one provider endpoint for `city`, mapping every failure to the taxonomy."""
        url = f"{self.settings.openweather_base_url.rstrip('/')}/{endpoint}"
        params = {"q": city, "appid": api_key, "units": "metric"}

        try:
            payload, elapsed_ms = await self.fetcher(
                self.http_client, url, params, self.settings.upstream_timeout_seconds
            )
        except Exception as exc:
            mapped = self._map_failure(exc, city)
            record_upstream_failure(mapped.kind.value)
            raise mapped from exc

        observe_upstream_call(endpoint, elapsed_ms)
        return payload

    @staticmethod
    def _map_failure(exc: Exception, city: str) -> WeatherServiceError:
        if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
            return UpstreamTimeout("The weather service is taking too long to respond. Please try again.")

        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            if status == 404:
                return city_not_found(city)
            if status == 401:
                # The provider rejected our key: a server problem, not the caller's
                return AuthenticationFailed("Invalid API key. Please contact administrator.")
            if status == 429:
                return RateLimited("API rate limit exceeded. Please try again later.")
            return UpstreamError(
                provider_message(exc.response) or "Failed to fetch weather data",
                details=f"API returned {status} status",
            )

        if isinstance(exc, httpx.RequestError):
            return NetworkError(
                "Unable to connect to weather service. Please try again later.",
                details=type(exc).__name__,
            )

        if isinstance(exc, ValueError):
            return UpstreamError("Weather service returned an unreadable response", details=str(exc))

        return UpstreamError("Failed to fetch weather data", details=str(exc))

    @staticmethod
    def _normalize(normalizer: Callable[[Dict[str, Any]], Any], payload: Dict[str, Any], city: str):
        try:
            return normalizer(payload)
        except (KeyError, IndexError, TypeError, ValueError, OverflowError, ValidationError) as exc:
            logger.error("Malformed provider payload for %s: %r", city, exc)
            record_upstream_failure(UpstreamError.kind.value)
            raise UpstreamError(
                "Weather service returned an incomplete response",
                details=f"missing or invalid field: {exc}",
            ) from exc

    async def _weather_or_none(self, city: str, api_key: str) -> Optional[WeatherRecord]:
        try:
            payload = await self._call("weather", city, api_key)
            return self._normalize(normalize_weather, payload, city)
        except WeatherServiceError as exc:
            logger.warning("Error fetching %s: %s", city, exc.extras.get("details", exc.message))
            return None

    async def list_cities(self, names: Sequence[str]) -> List[WeatherRecord]:
        """Fetch current weather for every name concurrently.

        Best effort: a city whose call fails is logged and left out, the rest
        keep their input order.
        """
        api_key = self._require_api_key()

        results = await asyncio.gather(*(self._weather_or_none(name, api_key) for name in names))
        records = [record for record in results if record is not None]

        logger.info("Successfully fetched weather for %d of %d cities", len(records), len(names))
        return records

    async def list_default_cities(self) -> List[WeatherRecord]:
        logger.info("Fetching weather for default cities...")
        records = await self.list_cities(self.settings.default_cities)
        default_cities_returned.set(len(records))
        return records

    async def search(self, city: Optional[str]) -> WeatherRecord:
        api_key = self._require_api_key()
        name = validate_city(city)
        logger.info("Searching weather for: %s", name)

        payload = await self._call("weather", name, api_key)
        record = self._normalize(normalize_weather, payload, name)

        logger.info("Successfully found weather for: %s, %s", record.city, record.country)
        return record

    async def forecast(self, city: Optional[str]) -> ForecastRecord:
        api_key = self._require_api_key()
        name = validate_city(city)
        logger.info("Fetching forecast for: %s", name)

        payload = await self._call("forecast", name, api_key)
        return self._normalize(normalize_forecast, payload, name)
