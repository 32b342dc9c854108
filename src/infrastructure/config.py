import os
from dataclasses import dataclass
from typing import Optional, Tuple
from dotenv import load_dotenv


load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), "..", ".env"))


DEFAULT_CITIES = "London,New York,Tokyo,Sydney,Mumbai,Paris,Dubai,Singapore"


def _split(value: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass
class Settings:
    """Service configuration loaded from environment variables."""

    # HTTP server
    port: int = int(os.getenv("PORT", "5000"))
    app_env: str = os.getenv("APP_ENV", "development")
    cors_origins: Tuple[str, ...] = _split(
        os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    )

    # OpenWeatherMap
    openweather_api_key: Optional[str] = os.getenv("OPENWEATHER_API_KEY") or None
    openweather_base_url: str = os.getenv("OPENWEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5")
    upstream_timeout_seconds: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "10"))

    # Cities shown on the dashboard before any search
    default_cities: Tuple[str, ...] = _split(os.getenv("DEFAULT_CITIES", DEFAULT_CITIES))

    # Logging and metrics
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    enable_metrics: bool = os.getenv("ENABLE_METRICS", "true").lower() == "true"

    @property
    def api_key_configured(self) -> bool:
        return bool(self.openweather_api_key)


settings = Settings()
