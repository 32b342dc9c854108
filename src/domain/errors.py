from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Failure taxonomy shared by the proxy and the client wrapper."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    MISCONFIGURED = "misconfigured"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    UPSTREAM_ERROR = "upstream_error"
    # Client side only: the proxy itself could not be reached
    UNREACHABLE = "unreachable"


class WeatherServiceError(Exception):
    """Base error of the proxy. Rendered as `{error, message, kind, ...extras}`."""

    kind: ErrorKind = ErrorKind.UPSTREAM_ERROR
    status_code: int = 500
    error: str = "Weather service error"

    def __init__(self, message: str, **extras: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extras: Dict[str, Any] = {k: v for k, v in extras.items() if v is not None}

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error, "message": self.message, "kind": self.kind.value}
        body.update(self.extras)
        return body


class InvalidInput(WeatherServiceError):
    kind = ErrorKind.INVALID_INPUT
    status_code = 400
    error = "Invalid city name"


class NotFound(WeatherServiceError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    error = "City not found"


class Misconfigured(WeatherServiceError):
    """The server lacks valid credentials. Never the caller's fault."""

    kind = ErrorKind.MISCONFIGURED
    status_code = 500
    error = "Server configuration error"


class AuthenticationFailed(Misconfigured):
    """The provider rejected the configured key."""

    error = "API authentication failed"


class RateLimited(WeatherServiceError):
    kind = ErrorKind.RATE_LIMITED
    status_code = 429
    error = "Too many requests"


class UpstreamTimeout(WeatherServiceError):
    kind = ErrorKind.TIMEOUT
    status_code = 408
    error = "Request timeout"


class UpstreamError(WeatherServiceError):
    kind = ErrorKind.UPSTREAM_ERROR
    status_code = 500
    error = "Weather service error"


class NetworkError(UpstreamError):
    """The provider could not be reached at all."""

    error = "Network error"


def missing_api_key() -> Misconfigured:
    return Misconfigured(
        "API key not configured. Please add OPENWEATHER_API_KEY to .env file",
        details="Contact administrator",
    )


def city_not_found(city: str, hint: Optional[str] = None) -> NotFound:
    return NotFound(
        f'Could not find weather data for "{city}". Please check the spelling and try again.',
        suggestions=hint or 'Try using the full city name or include country (e.g., "Paris, France")',
    )
