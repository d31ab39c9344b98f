import os
import json
import httpx
import logging
from typing import Any, Optional, Dict

# Default timeout configuration (in seconds)
DEFAULT_TIMEOUT = 30.0
DEFAULT_CONNECT_TIMEOUT = 5.0


def is_remote(location: str) -> bool:
    return location.lower().startswith(("http://", "https://"))


async def fetch_inventory(
    location: str,
    timeout: Optional[float] = None,
    connect_timeout: Optional[float] = None,
    headers: Optional[Dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Any:
    """
    Reads an exported inventory document from a local path or an HTTP(S) URL.

    Args:
        location: File path or URL of the JSON inventory export
        timeout: Total request timeout in seconds (default: 30s)
        connect_timeout: Connection timeout in seconds (default: 5s)
        headers: Optional dictionary of HTTP headers (e.g. an export API key)
        transport: Optional httpx transport, used by tests

    Returns:
        The decoded JSON document

    Raises:
        OSError: local file cannot be read
        json.JSONDecodeError: the document is not valid JSON
        httpx.HTTPError: the request failed or returned an error status
    """
    logger = logging.getLogger(__name__)

    if not is_remote(location):
        logger.debug(f"Reading inventory from {os.path.abspath(location)}")
        with open(location, "r", encoding="utf-8") as f:
            return json.load(f)

    logger.debug(f"HTTP GET {location} (timeout: {timeout or DEFAULT_TIMEOUT}s)")

    timeout_config = httpx.Timeout(
        timeout=timeout or DEFAULT_TIMEOUT,
        connect=connect_timeout or DEFAULT_CONNECT_TIMEOUT
    )

    try:
        async with httpx.AsyncClient(timeout=timeout_config, follow_redirects=True, transport=transport) as client:
            response = await client.get(location, headers=headers)
            logger.debug(f"HTTP {response.status_code} {location} ({len(response.content)} bytes)")
            response.raise_for_status()
            return response.json()
    except httpx.TimeoutException as e:
        logger.warning(f"HTTP timeout for {location}: {e}")
        raise
    except httpx.HTTPStatusError as e:
        logger.warning(f"HTTP error status for {location}: {e.response.status_code}")
        raise
    except httpx.RequestError as e:
        logger.warning(f"HTTP request error for {location}: {e}")
        raise
