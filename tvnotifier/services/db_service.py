"""
Database read operations for tracked items and subscribers

All queries are single read-only statements.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tvnotifier.models import TrackedMovie, TrackedShow, User


logger = logging.getLogger(__name__)


async def list_show_ids(db: AsyncSession) -> list[int]:
    """
    List tracked TVmaze show identifiers.

    Args:
        db: Database session

    Returns:
        Show identifiers in ascending order
    """
    result = await db.execute(select(TrackedShow.id).order_by(TrackedShow.id))
    show_ids = list(result.scalars().all())
    logger.info("Loaded %s tracked shows", len(show_ids))
    return show_ids


async def list_movie_ids(db: AsyncSession) -> list[int]:
    """
    List tracked TMDB movie identifiers.

    Args:
        db: Database session

    Returns:
        Movie identifiers in ascending order
    """
    result = await db.execute(select(TrackedMovie.id).order_by(TrackedMovie.id))
    movie_ids = list(result.scalars().all())
    logger.info("Loaded %s tracked movies", len(movie_ids))
    return movie_ids


async def list_subscribers(db: AsyncSession) -> list[str]:
    """
    List subscriber email addresses, skipping users without one.

    Args:
        db: Database session

    Returns:
        Email addresses ordered by user id
    """
    result = await db.execute(
        select(User.email).where(User.email.is_not(None)).order_by(User.id)
    )
    emails = [email for email in result.scalars().all() if email]
    logger.info("Loaded %s subscribers", len(emails))
    return emails
