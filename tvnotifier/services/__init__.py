"""
Services package for TV Notifier

This package contains the fetchers, the aggregation pipeline, rendering,
delivery and scheduling. Shared types are re-exported here; service entry
points are imported from their own modules.
"""
from tvnotifier.services.fetch_types import (
    AggregationError,
    DigestResult,
    FetchFailure,
    MovieAvailability,
    NotifierError,
    QualifyingMovie,
    ShowEvent,
)

__all__ = [
    'AggregationError',
    'DigestResult',
    'FetchFailure',
    'MovieAvailability',
    'NotifierError',
    'QualifyingMovie',
    'ShowEvent',
]
