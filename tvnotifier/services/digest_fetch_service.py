"""
Digest Fetching Service

Coordinates identifier lookup, concurrent enrichment, filtering, rendering and
delivery of the daily digest.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Literal

import httpx

from tvnotifier.config import Settings
from tvnotifier.database import session_scope
from tvnotifier.services.availability_service import fetch_availability
from tvnotifier.services.db_service import list_movie_ids, list_show_ids, list_subscribers
from tvnotifier.services.delivery_service import DigestDelivery
from tvnotifier.services.digest_renderer_service import render_html, render_subject, render_text
from tvnotifier.services.episode_service import fetch_next_episode
from tvnotifier.services.fetch_types import (
    AggregationError,
    DigestResult,
    FetchFailure,
    MovieAvailability,
    ShowEvent,
)
from tvnotifier.utils.data_filtering import filter_and_order_shows, match_movie_platforms
from tvnotifier.utils.http_operations import create_http_client
from tvnotifier.utils.logging_helpers import (
    log_failure_summary,
    log_run_end,
    log_run_start,
    log_section_end,
    log_section_start,
)
from tvnotifier.utils.timezone import Clock, resolve_timezone


logger = logging.getLogger(__name__)

# Global lock to prevent overlapping digest runs (scheduler + API trigger)
_digest_lock = asyncio.Lock()

FetchKind = Literal["show", "movie"]


@dataclass(slots=True)
class FetchContext:
    started_at: datetime
    today: date
    horizon: date


@dataclass(slots=True)
class FetchOutcome:
    kind: FetchKind
    index: int
    identifier: int
    started_at: datetime
    completed_at: datetime
    status: Literal["success", "failed"]
    value: Any = None
    error: str | None = None

    @property
    def duration_seconds(self) -> float:
        return max(0.0, (self.completed_at - self.started_at).total_seconds())

    def to_failure(self) -> FetchFailure:
        return FetchFailure(kind=self.kind, identifier=self.identifier, error=self.error or "unknown error")


class DigestFetchPipeline:
    """Enriches tracked identifiers concurrently and aggregates the results."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        clock: Clock,
        tvmaze_base_url: str = "https://api.tvmaze.com",
        availability_base_url: str = "https://streaming-availability.p.rapidapi.com",
        availability_api_host: str = "streaming-availability.p.rapidapi.com",
        availability_country: str = "us",
        rapid_api_key: str | None = None,
        future_day_limit: int = 7,
        max_concurrency: int | None = None,
        fail_fast: bool = False,
    ) -> None:
        self.client = client
        self.clock = clock
        self.tvmaze_base_url = tvmaze_base_url
        self.availability_base_url = availability_base_url
        self.availability_api_host = availability_api_host
        self.availability_country = availability_country
        self.rapid_api_key = rapid_api_key
        self.future_day_limit = future_day_limit
        self.fail_fast = fail_fast
        self._concurrency = max(1, max_concurrency or 8)
        self._semaphore = asyncio.Semaphore(self._concurrency)

    @classmethod
    def from_settings(
        cls,
        client: httpx.AsyncClient,
        settings: Settings,
        clock: Clock,
    ) -> DigestFetchPipeline:
        return cls(
            client,
            clock=clock,
            tvmaze_base_url=settings.tvmaze_base_url,
            availability_base_url=settings.availability_base_url,
            availability_api_host=settings.availability_api_host,
            availability_country=settings.availability_country,
            rapid_api_key=settings.rapid_api_key,
            future_day_limit=settings.future_day_limit,
            max_concurrency=settings.max_concurrency,
            fail_fast=settings.fail_fast,
        )

    async def run(
        self,
        show_ids: Sequence[int],
        movie_ids: Sequence[int] = (),
        subscriber_platforms: Iterable[str] = (),
    ) -> DigestResult:
        context = self._build_context()
        platforms = frozenset(subscriber_platforms)
        logger.info(
            "Target window: %s -> %s (future limit: %s days, concurrency: %s, %s)",
            context.today.isoformat(),
            context.horizon.isoformat(),
            self.future_day_limit,
            self._concurrency,
            "fail-fast" if self.fail_fast else "partial results",
        )

        if movie_ids and not platforms:
            logger.info("No subscribed movie platforms - skipping %s movie lookups", len(movie_ids))
            movie_ids = ()

        show_tasks = self._spawn("show", show_ids, self._fetch_show)
        movie_tasks = self._spawn("movie", movie_ids, self._fetch_movie)
        outcomes = await self._join(show_tasks + movie_tasks)

        show_outcomes = outcomes[:len(show_tasks)]
        movie_outcomes = outcomes[len(show_tasks):]

        events = [
            outcome.value
            for outcome in show_outcomes
            if outcome.status == "success" and outcome.value is not None
        ]
        availabilities = [outcome.value for outcome in movie_outcomes if outcome.status == "success"]
        failures = [outcome.to_failure() for outcome in outcomes if outcome.status == "failed"]

        shows = filter_and_order_shows(events, context.today, self.future_day_limit)
        movies = match_movie_platforms(availabilities, platforms)

        logger.info(
            "Aggregated %s/%s show events in window, %s/%s qualifying movies, %s failure(s)",
            len(shows),
            len(events),
            len(movies),
            len(availabilities),
            len(failures),
        )
        log_failure_summary(logger, failures)

        return DigestResult(
            generated_at=context.started_at,
            today=context.today,
            shows=shows,
            movies=movies,
            failures=failures,
        )

    def _build_context(self) -> FetchContext:
        started_at = self.clock.now()
        today = started_at.date()
        return FetchContext(
            started_at=started_at,
            today=today,
            horizon=today + timedelta(days=self.future_day_limit),
        )

    def _spawn(
        self,
        kind: FetchKind,
        identifiers: Sequence[int],
        fetch: Callable[[int], Awaitable[Any]],
    ) -> list[asyncio.Task[FetchOutcome]]:
        return [
            asyncio.create_task(self._process(kind, index, identifier, fetch))
            for index, identifier in enumerate(identifiers, start=1)
        ]

    async def _join(self, tasks: list[asyncio.Task[FetchOutcome]]) -> list[FetchOutcome]:
        """Wait for every task; on the first error cancel the rest and re-raise."""
        if not tasks:
            return []
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            if pending:
                logger.warning("Cancelled %s in-flight fetch task(s)", len(pending))
            raise

    async def _process(
        self,
        kind: FetchKind,
        index: int,
        identifier: int,
        fetch: Callable[[int], Awaitable[Any]],
    ) -> FetchOutcome:
        async with self._semaphore:
            started_at = datetime.now(timezone.utc)
            try:
                value = await fetch(identifier)
            except Exception as exc:
                if self.fail_fast:
                    logger.error("[%s %s] Fetch failed, aborting run: %s", kind, identifier, exc)
                    raise AggregationError(kind, identifier, exc) from exc

                logger.error(
                    "[%s %s] Fetch failed: %s",
                    kind,
                    identifier,
                    exc,
                    exc_info=True,
                )
                return FetchOutcome(
                    kind=kind,
                    index=index,
                    identifier=identifier,
                    started_at=started_at,
                    completed_at=datetime.now(timezone.utc),
                    status="failed",
                    error=f"{type(exc).__name__}: {exc}",
                )

        outcome = FetchOutcome(
            kind=kind,
            index=index,
            identifier=identifier,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
            status="success",
            value=value,
        )
        logger.debug(
            "[%s %s] Completed in %.2fs: %s",
            kind,
            identifier,
            outcome.duration_seconds,
            value,
        )
        return outcome

    async def _fetch_show(self, show_id: int) -> ShowEvent | None:
        return await fetch_next_episode(
            self.client,
            show_id,
            clock=self.clock,
            base_url=self.tvmaze_base_url,
        )

    async def _fetch_movie(self, movie_id: int) -> MovieAvailability:
        if not self.rapid_api_key:
            raise ValueError("rapid_api_key is not configured")
        return await fetch_availability(
            self.client,
            movie_id,
            api_key=self.rapid_api_key,
            base_url=self.availability_base_url,
            api_host=self.availability_api_host,
            country=self.availability_country,
        )


@dataclass(slots=True)
class DigestRun:
    """Outcome of building (and optionally sending) one digest."""
    status: Literal["built", "sent", "skipped"]
    result: DigestResult | None = None
    subject: str = ""
    text: str = ""
    html: str = ""
    recipients: list[str] = field(default_factory=list)


async def build_and_send_digest(
    settings: Settings,
    *,
    send: bool = True,
    clock: Clock | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    delivery: DigestDelivery | None = None,
) -> DigestRun:
    """
    Main entry point for a digest run with overlap protection.

    Reads tracked identifiers (and subscribers when sending) in one database
    session, enriches them, renders the digest and optionally emails it.

    Args:
        settings: Loaded application settings

    Keyword Args:
        send: Deliver the digest by email; when False only build and render it
        clock: Clock for "today" (defaults to the configured timezone)
        transport: HTTP transport override
        delivery: SMTP delivery override

    Returns:
        DigestRun with status 'skipped' if another run is in progress

    Raises:
        DeliveryConfigError: If sending is requested without SMTP configuration
        AggregationError: On a fetch failure in fail-fast mode
        DeliveryError: If the email cannot be sent
    """
    if _digest_lock.locked():
        logger.warning("Digest run already in progress, skipping this request")
        return DigestRun(status="skipped")

    async with _digest_lock:
        clock = clock or Clock(resolve_timezone(settings.timezone))
        log_run_start(logger, clock.now())

        if send and delivery is None:
            delivery = DigestDelivery.from_settings(settings)

        log_section_start(logger, "identifier lookup")
        async with session_scope() as session:
            show_ids = await list_show_ids(session)
            movie_ids = await list_movie_ids(session)
            recipients: list[str] = []
            if send:
                recipients = list(settings.recipients) or await list_subscribers(session)
        log_section_end(logger, "identifier lookup")

        log_section_start(logger, "enrichment")
        async with create_http_client(settings.http_timeout_sec, transport) as client:
            pipeline = DigestFetchPipeline.from_settings(client, settings, clock)
            result = await pipeline.run(show_ids, movie_ids, settings.movie_platforms)
        log_section_end(logger, "enrichment")

        run = DigestRun(
            status="built",
            result=result,
            subject=render_subject(result),
            text=render_text(result, settings.site_url),
            html=render_html(result, settings.site_url),
            recipients=recipients,
        )

        if send and delivery is not None:
            log_section_start(logger, "delivery")
            loop = asyncio.get_running_loop()
            logger.debug("Offloading SMTP delivery to thread pool executor...")
            sent = await loop.run_in_executor(
                None,
                delivery.send_digest,
                recipients,
                run.subject,
                run.html,
            )
            if sent:
                run.status = "sent"
            log_section_end(logger, "delivery")

        log_run_end(logger, clock.now())
        return run
