"""Shared HTTP transport for the data and auth APIs."""

from typing import Any, Dict, Optional

import httpx

from insura_ops.core.exceptions import BackendConnectionError, BackendTimeoutError
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


async def send_request(
    method: str,
    url: str,
    *,
    headers: Dict[str, str],
    params: Any = None,
    json: Any = None,
    timeout: float = 60,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.Response:
    """Send one request with a short-lived client.

    Transport failures are raised as backend errors; HTTP error statuses are
    returned to the caller, which knows how to parse the error body.

    Raises:
        BackendTimeoutError: If the request times out
        BackendConnectionError: If the backend cannot be reached
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            return await client.request(method, url, headers=headers, params=params, json=json)
    except httpx.TimeoutException as e:
        LOGGER.error(f"Request timed out: {method} {url}")
        raise BackendTimeoutError(f"Request timed out: {method} {url}", original_error=e) from e
    except httpx.TransportError as e:
        LOGGER.error(f"Network error calling backend: {method} {url}: {e}")
        raise BackendConnectionError(f"Network error contacting backend: {e}", original_error=e) from e


def response_json(response: httpx.Response) -> Any:
    """Decode a JSON body, returning None for empty or non-JSON bodies."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None
