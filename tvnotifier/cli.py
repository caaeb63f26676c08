"""
Command-line entry point: build the digest once and email it (or print it).
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from tvnotifier.config import Settings, load_settings, setup_logging
from tvnotifier.database import close_db, init_db
from tvnotifier.services.digest_fetch_service import DigestRun, build_and_send_digest
from tvnotifier.services.fetch_types import NotifierError


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tvnotifier",
        description="Email a digest of upcoming episodes and streamable movies.",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="JSON config file (values override environment variables)",
    )
    parser.add_argument(
        "--nomail",
        action="store_true",
        help="Print the digest to stdout instead of sending email",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


async def run_once(settings: Settings, *, send: bool) -> DigestRun:
    """Initialize the database, run one digest and release connections."""
    await init_db(settings.database_url)
    try:
        return await build_and_send_digest(settings, send=send)
    finally:
        await close_db()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.debug else "INFO")

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError, ValidationError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    if not args.debug:
        setup_logging(settings.log_level)

    try:
        run = asyncio.run(run_once(settings, send=not args.nomail))
    except NotifierError as exc:
        logger.error("Digest run failed: %s", exc)
        return 1
    except Exception as exc:
        logger.error("Unexpected error during digest run: %s", exc, exc_info=True)
        return 1

    if args.nomail:
        sys.stdout.write(run.text)
    else:
        logger.info("Digest run finished with status '%s'", run.status)
    return 0


if __name__ == "__main__":
    sys.exit(main())
