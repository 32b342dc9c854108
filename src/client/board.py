import logging
from collections import OrderedDict
from typing import List, Optional

from src.client.api_client import ClientError, WeatherApiClient
from src.domain.dto import WeatherRecord
from src.services.normalizer import round_half_up


logger = logging.getLogger(__name__)

CELSIUS = "celsius"
FAHRENHEIT = "fahrenheit"

ICON_URL = "https://openweathermap.org/img/wn/{icon}@2x.png"


def _key(city: str) -> str:
    return city.lower()


class WeatherBoard:
    """In-memory state of the dashboard: displayed cities, error banner, unit.

    Cities are kept in an ordered map keyed by lowercased name, so a repeated
    search updates the existing card instead of adding a second one.
    """

    def __init__(self, client: WeatherApiClient) -> None:
        self.client = client
        self._records: "OrderedDict[str, WeatherRecord]" = OrderedDict()
        self.status = "idle"
        self.error: Optional[str] = None
        self.unit = CELSIUS

    @property
    def records(self) -> List[WeatherRecord]:
        return list(self._records.values())

    async def refresh(self) -> None:
        """Reload the default cities. On failure the board shows an error, not an empty list."""
        self.status = "loading"
        self.error = None
        try:
            cities = await self.client.fetch_cities()
        except ClientError as exc:
            logger.error("Error loading weather data: %s", exc.message)
            self.error = exc.message or "Failed to fetch weather data"
            self.status = "error"
            return

        self._records = OrderedDict((_key(record.city), record) for record in cities)
        self.status = "loaded"

    async def search(self, city_name: str) -> Optional[WeatherRecord]:
        """Add or update one city. A failed search leaves the list as it was."""
        self.error = None
        try:
            record = await self.client.search_city(city_name)
        except ClientError as exc:
            logger.error("Error searching city: %s", exc.message)
            self.error = exc.message or "City not found"
            return None

        key = _key(record.city)
        existing = key in self._records
        self._records[key] = record
        if not existing:
            self._records.move_to_end(key, last=False)
        return record

    def dismiss_error(self) -> None:
        self.error = None

    def toggle_unit(self) -> str:
        self.unit = FAHRENHEIT if self.unit == CELSIUS else CELSIUS
        return self.unit

    def convert_temperature(self, celsius: int) -> int:
        if self.unit == FAHRENHEIT:
            return round_half_up(celsius * 9 / 5 + 32)
        return celsius

    @property
    def unit_symbol(self) -> str:
        return "°C" if self.unit == CELSIUS else "°F"

    @staticmethod
    def icon_url(icon: str) -> str:
        return ICON_URL.format(icon=icon)
