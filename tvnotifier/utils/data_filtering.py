"""
Data filtering utilities

This module handles the date window, ordering, and platform matching applied
to fetched results before rendering.
"""
import logging
from collections.abc import Iterable, Sequence
from datetime import date, timedelta

from tvnotifier.services.fetch_types import MovieAvailability, QualifyingMovie, ShowEvent

logger = logging.getLogger(__name__)


def filter_and_order_shows(
    shows: Iterable[ShowEvent],
    today: date,
    future_day_limit: int,
) -> list[ShowEvent]:
    """
    Drop events beyond the future window and sort the rest by air time.

    An event dated exactly today + future_day_limit is kept. Sorting is stable,
    so events airing at the same instant keep their input order.

    Args:
        shows: Fetched events, in identifier order
        today: Current local date
        future_day_limit: Window length in days

    Returns:
        Events inside the window, ascending by air time
    """
    horizon = today + timedelta(days=future_day_limit)

    kept = []
    for show in shows:
        if show.air_time.date() > horizon:
            logger.debug(
                "Skipping %s (%s): airs %s, after %s",
                show.name,
                show.episode_name,
                show.air_time.date(),
                horizon,
            )
            continue
        kept.append(show)

    kept.sort(key=lambda show: show.air_time)
    return kept


def match_movie_platforms(
    movies: Sequence[MovieAvailability],
    subscriber_platforms: Iterable[str],
) -> list[QualifyingMovie]:
    """
    Keep movies streaming on at least one subscribed platform.

    Movies sharing a title are merged. The result is ordered by title.

    Args:
        movies: Availability of each tracked movie
        subscriber_platforms: Platform names the subscribers pay for

    Returns:
        Qualifying movies with only the matching platforms
    """
    subscribed = frozenset(subscriber_platforms)
    by_title: dict[str, frozenset[str]] = {}

    for movie in movies:
        matching = subscribed & movie.platforms
        if not matching:
            logger.debug("Dropping %s: not on any subscribed platform", movie.title)
            continue
        by_title[movie.title] = by_title.get(movie.title, frozenset()) | matching

    return [
        QualifyingMovie(title=title, platforms=platforms)
        for title, platforms in sorted(by_title.items())
    ]
