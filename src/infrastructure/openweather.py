import asyncio
import time
from typing import Any, Dict, Optional, Tuple

import httpx


USER_AGENT = "WeatherProxy/1.0"


def create_http_client() -> httpx.AsyncClient:
    """Shared async client for provider calls. Closed on app shutdown."""
    return httpx.AsyncClient(headers={"User-Agent": USER_AGENT}, follow_redirects=True)


async def fetch_provider_json(
        client: httpx.AsyncClient,
        url: str,
        params: Dict[str, Any],
        timeout_seconds: float) -> Tuple[Dict[str, Any], int]:
    """GET a provider endpoint and return (payload, elapsed_ms) tuple.

    The caller gives up after `timeout_seconds` even if the transport does not
    enforce its own timeout; nothing is signalled upstream.

    Raises:
        asyncio.TimeoutError | httpx.TimeoutException: the call took too long
        httpx.HTTPStatusError: the provider answered with a non-2xx status
        httpx.RequestError: the provider could not be reached
        ValueError: the body is not JSON
    """
    start = time.perf_counter()
    response = await asyncio.wait_for(
        client.get(url, params=params, timeout=timeout_seconds),
        timeout=timeout_seconds,
    )
    response.raise_for_status()
    payload = response.json()
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    return payload, elapsed_ms


def provider_message(response: httpx.Response) -> Optional[str]:
    """Extract OpenWeatherMap's `message` from an error response, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return None
