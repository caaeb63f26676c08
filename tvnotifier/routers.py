from datetime import datetime, timezone
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from tvnotifier.config import get_settings
from tvnotifier.schemas import (
    DigestResponse,
    ErrorDetail,
    FetchFailureResponse,
    MovieResponse,
    ShowEventResponse,
    StandardErrorResponse,
)
from tvnotifier.services.digest_fetch_service import DigestRun, build_and_send_digest
from tvnotifier.services.fetch_types import (
    AggregationError,
    DeliveryConfigError,
    DeliveryError,
)
from tvnotifier.services.scheduler_service import digest_scheduler


logger = logging.getLogger(__name__)

main_router = APIRouter()


@main_router.get("/")
async def root() -> dict:
    """Root endpoint with service information"""
    next_run = digest_scheduler.get_next_run_time()

    return {
        "service": "TV Notifier",
        "version": "0.1.0",
        "next_scheduled_digest": next_run.isoformat() if next_run else None,
        "endpoints": {
            "digest": "/digest - Build the digest without sending it",
            "send": "/digest/send - Build and email the digest (POST)",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health")
async def health_check() -> dict:
    """Health check endpoint"""
    next_run = digest_scheduler.get_next_run_time()
    return {
        "status": "ok",
        "scheduler_running": digest_scheduler.is_running(),
        "next_digest": next_run.isoformat() if next_run else None
    }


@main_router.get("/digest", response_model=DigestResponse)
async def preview_digest():
    """Build the digest and return it without sending email"""
    logger.info("Digest preview requested via API")
    return await _run_digest(send=False)


@main_router.post("/digest/send", response_model=DigestResponse)
async def send_digest():
    """
    Manually trigger the digest email

    This will fetch episode and availability data, render and send it
    """
    logger.info("Manual digest send triggered via API")
    return await _run_digest(send=True)


async def _run_digest(send: bool) -> DigestResponse | JSONResponse:
    try:
        run = await build_and_send_digest(get_settings(), send=send)
    except DeliveryConfigError as exc:
        logger.error("Digest delivery not configured: %s", exc)
        return _error_response(500, "DELIVERY_NOT_CONFIGURED", str(exc))
    except DeliveryError as exc:
        logger.error("Digest delivery failed: %s", exc, exc_info=True)
        return _error_response(502, "DELIVERY_FAILED", str(exc))
    except AggregationError as exc:
        logger.error("Digest aggregation failed: %s", exc)
        return _error_response(
            502,
            "FETCH_FAILED",
            str(exc),
            {"kind": exc.kind, "identifier": exc.identifier},
        )
    return to_digest_response(run)


def _error_response(status_code: int, code: str, message: str, context: dict | None = None) -> JSONResponse:
    body = StandardErrorResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        error=ErrorDetail(code=code, message=message, context=context),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def to_digest_response(run: DigestRun) -> DigestResponse:
    """Convert a digest run to its API representation"""
    result = run.result
    if result is None:
        return DigestResponse(
            status=run.status,
            generated_at=datetime.now(timezone.utc).isoformat(),
            subject="",
        )

    return DigestResponse(
        status=run.status,
        generated_at=result.generated_at.isoformat(),
        subject=run.subject,
        recipients=len(run.recipients),
        shows=[
            ShowEventResponse(
                show_id=show.show_id,
                name=show.name,
                episode_name=show.episode_name,
                air_time=show.air_time.isoformat(),
                airing_today=show.air_time.date() == result.today,
            )
            for show in result.shows
        ],
        movies=[
            MovieResponse(title=movie.title, platforms=sorted(movie.platforms))
            for movie in result.movies
        ],
        failures=[FetchFailureResponse(**failure.to_dict()) for failure in result.failures],
        text=run.text,
    )
