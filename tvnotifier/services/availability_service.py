"""
Availability Fetch Service

Looks up where a tracked movie streams under subscription or add-on access.
"""
import logging

import httpx
from pydantic import ValidationError

from tvnotifier.schemas import AvailabilityPayload
from tvnotifier.services.fetch_types import AvailabilityFetchError, MovieAvailability
from tvnotifier.utils.http_operations import get_json


logger = logging.getLogger(__name__)

AVAILABILITY_BASE_URL = "https://streaming-availability.p.rapidapi.com"
AVAILABILITY_API_HOST = "streaming-availability.p.rapidapi.com"
SUBSCRIPTION_TYPES = frozenset({"subscription", "addon"})


async def fetch_availability(
    client: httpx.AsyncClient,
    movie_id: int,
    *,
    api_key: str,
    base_url: str = AVAILABILITY_BASE_URL,
    api_host: str = AVAILABILITY_API_HOST,
    country: str = "us",
) -> MovieAvailability:
    """
    Fetch the subscription platforms offering a movie

    Args:
        client: Shared HTTP client
        movie_id: TMDB movie identifier

    Keyword Args:
        api_key: RapidAPI key
        base_url: Availability API root
        api_host: Value for the X-RapidAPI-Host header
        country: Region whose offerings are inspected

    Returns:
        MovieAvailability with rental and purchase offerings excluded

    Raises:
        httpx.HTTPError: On transport failure or non-success status
        AvailabilityFetchError: If the body cannot be parsed
    """
    headers = {
        "X-RapidAPI-Key": api_key,
        "X-RapidAPI-Host": api_host,
    }
    params = {"output_language": "en", "tmdb_id": f"movie/{movie_id}"}

    try:
        body = await get_json(client, f"{base_url}/get", params=params, headers=headers)
        payload = AvailabilityPayload.model_validate(body)
    except (ValueError, ValidationError) as e:
        raise AvailabilityFetchError(f"Movie {movie_id}: unparseable availability response") from e

    offers = payload.result.streaming_info.get(country, [])
    platforms = frozenset(
        offer.platform for offer in offers if offer.streaming_type in SUBSCRIPTION_TYPES
    )
    logger.debug(
        "Movie %s (%s): %s offers, subscription platforms: %s",
        movie_id,
        payload.result.title,
        len(offers),
        sorted(platforms),
    )

    return MovieAvailability(movie_id=movie_id, title=payload.result.title, platforms=platforms)
