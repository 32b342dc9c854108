import math
from typing import Any, Dict, Optional

from src.domain.dto import Coordinates, ForecastEntry, ForecastRecord, WeatherRecord


FORECAST_STEPS = 8


def round_half_up(value: float) -> int:
    """Round like the dashboard always has: halves go up, so -2.5 becomes -2."""
    return int(math.floor(value + 0.5))


def visibility_km(meters: Optional[float]) -> Optional[int]:
    if meters is None:
        return None
    return round_half_up(meters / 1000)


def normalize_weather(raw: Dict[str, Any]) -> WeatherRecord:
    """Reshape an OpenWeatherMap `/weather` payload into a WeatherRecord.

    Raises KeyError, IndexError, TypeError or pydantic's ValidationError
    when the payload is incomplete; no partial record is ever built.
    """
    main = raw["main"]
    condition = raw["weather"][0]

    return WeatherRecord(
        id=raw["id"],
        city=raw["name"],
        country=raw["sys"]["country"],
        temperature=round_half_up(main["temp"]),
        feels_like=round_half_up(main["feels_like"]),
        description=condition["description"],
        icon=condition["icon"],
        humidity=main["humidity"],
        wind_speed=raw["wind"]["speed"],
        pressure=main["pressure"],
        visibility=visibility_km(raw.get("visibility")),
        coordinates=Coordinates(lat=raw["coord"]["lat"], lon=raw["coord"]["lon"]),
    )


def normalize_forecast(raw: Dict[str, Any], steps: int = FORECAST_STEPS) -> ForecastRecord:
    """Reshape a `/forecast` payload, keeping the first `steps` 3-hour entries."""
    entries = [
        ForecastEntry(
            date=item["dt_txt"],
            temperature=round_half_up(item["main"]["temp"]),
            description=item["weather"][0]["description"],
            icon=item["weather"][0]["icon"],
            humidity=item["main"]["humidity"],
            wind_speed=item["wind"]["speed"],
        )
        for item in raw["list"][:steps]
    ]

    return ForecastRecord(
        city=raw["city"]["name"],
        country=raw["city"]["country"],
        forecast=entries,
    )
