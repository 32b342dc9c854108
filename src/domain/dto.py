from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    """Snake_case attributes in Python, camelCase keys on the wire."""

    model_config = ConfigDict(populate_by_name=True)


class Coordinates(BaseModel):
    lat: float
    lon: float


class WeatherRecord(_CamelModel):
    """Current conditions for one city, flattened from the provider payload."""

    id: int
    city: str
    country: str
    temperature: int
    feels_like: int = Field(alias="feelsLike")
    description: str
    icon: str
    humidity: int
    wind_speed: float = Field(alias="windSpeed")
    pressure: int
    # Kilometers; None means the provider did not report it and the key is dropped on output
    visibility: Optional[int] = None
    coordinates: Coordinates


class ForecastEntry(_CamelModel):
    date: str
    temperature: int
    description: str
    icon: str
    humidity: int
    wind_speed: float = Field(alias="windSpeed")


class ForecastRecord(BaseModel):
    city: str
    country: str
    forecast: List[ForecastEntry]


class CitiesResponse(BaseModel):
    cities: List[WeatherRecord]


class HealthResponse(_CamelModel):
    status: str
    message: str
    timestamp: str
    api_key_configured: bool = Field(alias="apiKeyConfigured")
