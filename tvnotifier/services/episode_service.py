"""
Episode Fetch Service

Looks up the episode worth notifying about for a single tracked show.
"""
import logging

import httpx
from pydantic import ValidationError

from tvnotifier.schemas import EpisodePayload
from tvnotifier.services.fetch_types import EpisodeFetchError, EpisodeParseError, ShowEvent
from tvnotifier.utils.http_operations import get_json
from tvnotifier.utils.timezone import Clock, DateFormatError, parse_rfc3339


logger = logging.getLogger(__name__)

TVMAZE_BASE_URL = "https://api.tvmaze.com"
EPISODE_EMBEDS = [("embed[]", "nextepisode"), ("embed[]", "previousepisode")]


async def fetch_next_episode(
    client: httpx.AsyncClient,
    show_id: int,
    *,
    clock: Clock,
    base_url: str = TVMAZE_BASE_URL,
) -> ShowEvent | None:
    """
    Fetch the episode to notify about for a show

    An episode that already aired today wins over the next scheduled one.

    Args:
        client: Shared HTTP client
        show_id: TVmaze show identifier
        clock: Clock deciding what "today" is

    Keyword Args:
        base_url: TVmaze API root

    Returns:
        ShowEvent, or None when the show has no previous-today or next episode

    Raises:
        httpx.HTTPError: On transport failure or non-success status
        EpisodeFetchError: If the body is not a show object or has no name
        EpisodeParseError: If an embedded episode lacks a name or valid airstamp
    """
    url = f"{base_url}/shows/{show_id}"
    try:
        show = await get_json(client, url, params=EPISODE_EMBEDS)
    except ValueError as e:
        raise EpisodeFetchError(f"Show {show_id}: malformed response body") from e

    if not isinstance(show, dict):
        raise EpisodeFetchError(f"Show {show_id}: response is not an object")

    show_name = show.get("name")
    if not isinstance(show_name, str) or not show_name:
        raise EpisodeFetchError(f"Show {show_id}: show name not found")

    embedded = show.get("_embedded")
    if not isinstance(embedded, dict):
        logger.debug("Show %s (%s) has no embedded episodes", show_id, show_name)
        return None

    previous_episode = embedded.get("previousepisode")
    if isinstance(previous_episode, dict):
        previous_event = _parse_episode(show_id, show_name, previous_episode, clock)
        if previous_event.air_time.date() == clock.today():
            logger.debug("Show %s aired today: %s", show_id, previous_event.episode_name)
            return previous_event

    next_episode = embedded.get("nextepisode")
    if not isinstance(next_episode, dict):
        logger.debug("Show %s (%s) has no upcoming episode", show_id, show_name)
        return None

    return _parse_episode(show_id, show_name, next_episode, clock)


def _parse_episode(show_id: int, show_name: str, episode: dict, clock: Clock) -> ShowEvent:
    """Build a ShowEvent from an embedded episode object"""
    try:
        payload = EpisodePayload.model_validate(episode)
        air_time = parse_rfc3339(payload.airstamp)
    except (ValidationError, DateFormatError) as e:
        raise EpisodeParseError(f"Show {show_id}: invalid episode data: {e}") from e

    return ShowEvent(
        show_id=show_id,
        name=show_name,
        episode_name=payload.name,
        air_time=clock.localize(air_time),
    )
