import pytest

from src.services.normalizer import normalize_forecast, normalize_weather, round_half_up
from tests.providers import forecast_payload, weather_payload


def test_weather_record_has_every_field():
    record = normalize_weather(weather_payload())

    assert record.id == 2643743
    assert record.city == "London"
    assert record.country == "GB"
    assert record.temperature == 15
    assert record.feels_like == 15
    assert record.description == "broken clouds"
    assert record.icon == "04d"
    assert record.humidity == 81
    assert record.wind_speed == 4.63
    assert record.pressure == 1012
    assert record.visibility == 10
    assert record.coordinates.lat == 51.5085
    assert record.coordinates.lon == -0.1257


@pytest.mark.parametrize(
    "temp, expected",
    [(15.4, 15), (15.5, 16), (-2.5, -2), (-2.6, -3), (0.49, 0)],
)
def test_temperatures_round_half_up(temp, expected):
    record = normalize_weather(weather_payload(temp=temp, feels_like=temp))

    assert record.temperature == expected
    assert record.feels_like == expected
    assert round_half_up(temp) == expected


def test_visibility_converted_to_kilometers():
    assert normalize_weather(weather_payload(visibility=7499)).visibility == 7
    assert normalize_weather(weather_payload(visibility=7500)).visibility == 8
    # Zero is a real reading, not a missing one
    assert normalize_weather(weather_payload(visibility=0)).visibility == 0


def test_missing_visibility_is_omitted_on_the_wire():
    record = normalize_weather(weather_payload(visibility=None))

    assert record.visibility is None
    body = record.model_dump(by_alias=True, exclude_none=True)
    assert "visibility" not in body
    assert body["feelsLike"] == 15
    assert body["windSpeed"] == 4.63


@pytest.mark.parametrize("field", ["main", "sys", "weather", "coord", "name"])
def test_incomplete_payload_produces_no_record(field):
    payload = weather_payload()
    del payload[field]

    with pytest.raises(KeyError):
        normalize_weather(payload)


def test_empty_weather_list_produces_no_record():
    payload = weather_payload()
    payload["weather"] = []

    with pytest.raises(IndexError):
        normalize_weather(payload)


def test_forecast_keeps_first_eight_entries():
    record = normalize_forecast(forecast_payload(name="Paris", country="FR", steps=40))

    assert record.city == "Paris"
    assert record.country == "FR"
    assert len(record.forecast) == 8
    assert record.forecast[0].date == "2026-10-19 00:00:00"
    assert record.forecast[0].temperature == 11
    assert record.forecast[7].date == "2026-10-19 21:00:00"
    assert record.forecast[0].wind_speed == 3.1


def test_short_forecast_is_not_padded():
    record = normalize_forecast(forecast_payload(steps=3))

    assert len(record.forecast) == 3
