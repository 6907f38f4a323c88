"""Async retrieval of the raw feature collection.

This is the only awaited boundary in incident-explorer.  It is called once
per load; there is no retry and no cancellation.  Any non-success
response or transport error becomes a FetchFailure.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from incident_explorer.domain.errors import FetchFailure

logger = logging.getLogger(__name__)


async def fetch_feature_collection(
    url: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = 30.0,
) -> Any:
    """GET *url* and return its decoded JSON body.

    Args:
        url: Location of the GeoJSON feature collection.
        client: Optional shared client.  A private one is created (and
            closed) when omitted.
        timeout: Request timeout in seconds for a private client.

    Raises:
        FetchFailure: On transport errors, non-2xx responses, or a body
            that is not JSON.
    """
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=timeout)

    try:
        logger.info("Fetching feature collection from %s", url)
        try:
            response = await client.get(url)
        except httpx.HTTPError as exc:
            raise FetchFailure(url, str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            raise FetchFailure(url, response.reason_phrase, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise FetchFailure(url, "response body is not valid JSON", response.status_code) from exc
    finally:
        if owns_client:
            await client.aclose()
