import logging
from datetime import datetime
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from tvnotifier.config import Settings
from tvnotifier.services.digest_fetch_service import build_and_send_digest
from tvnotifier.utils.timezone import resolve_timezone


logger = logging.getLogger(__name__)

JOB_ID = 'digest_send'


class DigestScheduler:
    """Scheduler for the daily digest email"""

    def __init__(self):
        self.scheduler: AsyncIOScheduler | None = None
        self.settings: Settings | None = None

    async def _send_job(self) -> None:
        """Background job that builds and sends the digest"""
        logger.info("Scheduled digest run triggered")
        if self.settings is None:
            logger.error("Scheduler has no settings, skipping run")
            return
        try:
            run = await build_and_send_digest(self.settings, send=True)
            logger.info("Scheduled digest run finished with status '%s'", run.status)
        except Exception as e:
            logger.error(f"Exception in scheduled digest run: {e}", exc_info=True)

    def start(self, settings: Settings) -> None:
        """Start the scheduler with the digest job"""
        if self.scheduler and self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        tz = resolve_timezone(settings.timezone)
        try:
            trigger = CronTrigger.from_crontab(settings.digest_cron, timezone=tz)
        except (ValueError, KeyError) as exc:
            logger.error("Invalid cron expression '%s': %s", settings.digest_cron, exc)
            raise

        self.settings = settings
        self.scheduler = AsyncIOScheduler(timezone=tz)
        self.scheduler.add_job(
            self._send_job,
            trigger=trigger,
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=settings.digest_misfire_grace_sec
        )

        self.scheduler.start()
        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler started. Next digest: %s",
            next_time.isoformat() if next_time else "unknown"
        )

    def shutdown(self) -> None:
        """Shutdown the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")
        self.scheduler = None

    def is_running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled digest time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None


digest_scheduler = DigestScheduler()
