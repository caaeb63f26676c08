"""
Structured logging helpers for consistent log formatting.

Provides utilities for structured, clean logging without excessive decorative separators.
"""
import logging
from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tvnotifier.services.fetch_types import FetchFailure


def log_section_start(logger: logging.Logger, section_name: str) -> None:
    """
    Log the start of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being started
    """
    logger.info(f"Starting: {section_name}")


def log_section_end(logger: logging.Logger, section_name: str) -> None:
    """
    Log the end of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being ended
    """
    logger.info(f"Completed: {section_name}")


def log_run_start(logger: logging.Logger, now: datetime) -> None:
    """Log digest run start."""
    logger.info(f"Digest run started at {now.isoformat()}")


def log_run_end(logger: logging.Logger, now: datetime) -> None:
    """Log digest run end."""
    logger.info(f"Digest run completed at {now.isoformat()}")


def log_failure_summary(logger: logging.Logger, failures: Sequence["FetchFailure"]) -> None:
    """
    Log identifiers whose enrichment failed.

    Args:
        logger: Logger instance
        failures: Failures collected by a partial-result run
    """
    if not failures:
        return
    logger.warning(f"{len(failures)} identifier(s) could not be enriched:")
    for failure in failures:
        logger.warning(f"  {failure.kind} {failure.identifier}: {failure.error}")
