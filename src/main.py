import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_404_NOT_FOUND, HTTP_500_INTERNAL_SERVER_ERROR

from src.controllers.http import API_ENDPOINTS, router as http_router
from src.domain.errors import WeatherServiceError
from src.infrastructure.config import Settings, settings as default_settings
from src.infrastructure.logging_config import setup_logging
from src.infrastructure.service_provider import close_http_client
from src.metrics.metrics import setup_metrics


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Report the configuration on startup and close the provider client on shutdown"""
    current: Settings = app.state.settings
    if current.api_key_configured:
        logger.info("OpenWeatherMap API key loaded successfully")
    else:
        logger.warning(
            "OpenWeatherMap API key not found! Create a .env file with OPENWEATHER_API_KEY=your_key_here"
        )
    logger.info("CORS enabled for: %s", ", ".join(current.cors_origins))
    yield
    await close_http_client()
    logger.info("Weather API server stopped")


async def weather_error_handler(request: Request, exc: WeatherServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def not_found_handler(request: Request, exc: StarletteHTTPException):
    """Unknown `/api/*` paths get a JSON body listing what does exist."""
    if exc.status_code == HTTP_404_NOT_FOUND and request.url.path.startswith("/api"):
        return JSONResponse(
            status_code=HTTP_404_NOT_FOUND,
            content={
                "error": "API endpoint not found",
                "message": f"The endpoint {request.url.path} does not exist",
                "availableEndpoints": list(API_ENDPOINTS.values()),
            },
        )
    return await http_exception_handler(request, exc)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    content = {"error": "Internal server error", "message": "Something went wrong on the server"}
    if request.app.state.settings.app_env == "development":
        content["details"] = str(exc)
    return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure FastAPI application.
    """
    settings = settings or default_settings
    setup_logging(settings.log_level)

    app = FastAPI(title="Weather Proxy", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.info("%s %s -> %s (%d ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    # Health, weather and fallback endpoints
    app.include_router(http_router)
    app.add_exception_handler(WeatherServiceError, weather_error_handler)
    app.add_exception_handler(StarletteHTTPException, not_found_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Prometheus metrics endpoint
    if settings.enable_metrics:
        setup_metrics(app)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=default_settings.port)
