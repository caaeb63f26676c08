"""
HTTP utilities

This module builds the shared HTTP client and performs JSON GET requests.
Requests are issued once; failures propagate to the caller.
"""
import logging
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import httpx


logger = logging.getLogger(__name__)

USER_AGENT = "tvnotifier/0.1.0"


def create_http_client(
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Create the HTTP client shared by all fetch tasks of a run

    Args:
        timeout: HTTP timeout in seconds
        transport: Optional transport override (e.g. httpx.MockTransport)

    Returns:
        httpx.AsyncClient, to be closed by the caller
    """
    return httpx.AsyncClient(
        timeout=timeout,
        transport=transport,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    )


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | list[tuple[str, Any]] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """
    GET a URL and decode its JSON body

    Args:
        client: Shared HTTP client
        url: URL to request
        params: Query parameters
        headers: Extra request headers

    Returns:
        Decoded JSON document

    Raises:
        httpx.HTTPStatusError: On a non-success status code
        httpx.HTTPError: On connection or timeout errors
        ValueError: If the body is not valid JSON
    """
    logger.debug("GET %s", sanitize_url_for_logging(url))
    response = await client.get(url, params=params, headers=headers)

    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.error(
            "HTTP %s from %s",
            e.response.status_code,
            sanitize_url_for_logging(str(e.request.url)),
        )
        raise

    return response.json()


def sanitize_url_for_logging(url: str) -> str:
    """Remove credentials and query string from URL for safe logging."""
    if "://" not in url:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    netloc = parts.netloc
    if "@" in netloc:
        netloc = "***:***@" + netloc.split("@", 1)[1]
    return urlunsplit((parts.scheme, netloc, parts.path, "", ""))
