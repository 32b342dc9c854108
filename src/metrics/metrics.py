from fastapi import APIRouter, FastAPI
from prometheus_client import Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response


metrics_router = APIRouter()

upstream_request_seconds = Histogram(
    "upstream_request_seconds", "Time spent waiting for the weather provider in seconds", ["endpoint"]
)
upstream_failures_total = Counter(
    "upstream_failures_total", "Failed weather provider calls by error kind", ["kind"]
)
default_cities_returned = Gauge(
    "default_cities_returned", "Number of default cities returned by the last batch request"
)


def observe_upstream_call(endpoint: str, elapsed_ms: int) -> None:
    """Record the duration of a successful provider call.

    Args:
        endpoint (str): Provider endpoint name, `weather` or `forecast`
        elapsed_ms (int): Time taken by the call in milliseconds
    """
    upstream_request_seconds.labels(endpoint=endpoint).observe(elapsed_ms / 1000.0)


def record_upstream_failure(kind: str) -> None:
    upstream_failures_total.labels(kind=kind).inc()


@metrics_router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def setup_metrics(app: FastAPI) -> None:
    """
    Expose the Prometheus endpoint on the app.
    Metrics are updated directly by the weather service, so no middleware is needed.
    """
    app.include_router(metrics_router)
