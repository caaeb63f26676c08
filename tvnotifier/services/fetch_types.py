"""
Shared dataclasses and errors used across the digest pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal


class NotifierError(Exception):
    """Base class for errors raised by the notifier."""


class EpisodeFetchError(NotifierError):
    """Raised when the episode API answers with an unusable show payload."""


class EpisodeParseError(EpisodeFetchError):
    """Raised when an embedded episode lacks a name or a valid airstamp."""


class AvailabilityFetchError(NotifierError):
    """Raised when the availability API answers with an unusable payload."""


class AggregationError(NotifierError):
    """Raised by a fail-fast pipeline run when one identifier cannot be enriched."""

    def __init__(self, kind: str, identifier: int, cause: BaseException) -> None:
        super().__init__(f"Failed to fetch {kind} {identifier}: {cause}")
        self.kind = kind
        self.identifier = identifier
        self.cause = cause


class DeliveryConfigError(NotifierError):
    """Raised at startup when SMTP delivery is not fully configured."""


class DeliveryError(NotifierError):
    """Raised when the digest email cannot be sent."""


@dataclass(frozen=True, slots=True)
class ShowEvent:
    """An episode airing for a tracked show."""
    show_id: int
    name: str
    episode_name: str
    air_time: datetime


@dataclass(frozen=True, slots=True)
class MovieAvailability:
    """Subscription-style streaming offerings for one movie."""
    movie_id: int
    title: str
    platforms: frozenset[str] = frozenset()


@dataclass(frozen=True, slots=True)
class QualifyingMovie:
    """A movie streaming on at least one subscribed platform."""
    title: str
    platforms: frozenset[str]


@dataclass(frozen=True, slots=True)
class FetchFailure:
    """Diagnostic for an identifier whose enrichment failed."""
    kind: Literal["show", "movie"]
    identifier: int
    error: str

    def to_dict(self) -> dict:
        return {"kind": self.kind, "identifier": self.identifier, "error": self.error}


@dataclass(slots=True)
class DigestResult:
    """Aggregated output of one pipeline run."""
    generated_at: datetime
    today: date
    shows: list[ShowEvent] = field(default_factory=list)
    movies: list[QualifyingMovie] = field(default_factory=list)
    failures: list[FetchFailure] = field(default_factory=list)

    @property
    def today_shows(self) -> list[ShowEvent]:
        return [show for show in self.shows if show.air_time.date() == self.today]

    @property
    def future_shows(self) -> list[ShowEvent]:
        return [show for show in self.shows if show.air_time.date() != self.today]


__all__ = [
    "NotifierError",
    "EpisodeFetchError",
    "EpisodeParseError",
    "AvailabilityFetchError",
    "AggregationError",
    "DeliveryConfigError",
    "DeliveryError",
    "ShowEvent",
    "MovieAvailability",
    "QualifyingMovie",
    "FetchFailure",
    "DigestResult",
]
