import asyncio

import pytest

from tvnotifier.config import Settings
from tvnotifier.services import scheduler_service
from tvnotifier.services.digest_fetch_service import DigestRun
from tvnotifier.services.scheduler_service import DigestScheduler


def test_start_schedules_digest_in_configured_timezone() -> None:
    settings = Settings(digest_cron="30 7 * * *", timezone="America/New_York")
    scheduler = DigestScheduler()

    async def go():
        scheduler.start(settings)
        try:
            return scheduler.is_running(), scheduler.get_next_run_time()
        finally:
            scheduler.shutdown()

    running, next_run = asyncio.run(go())

    assert running is True
    assert (next_run.hour, next_run.minute) == (7, 30)
    assert str(next_run.tzinfo) == "America/New_York"
    assert scheduler.is_running() is False
    assert scheduler.get_next_run_time() is None


def test_send_job_logs_and_swallows_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    async def failing_run(settings, *, send=True, **kwargs):
        calls.append(send)
        raise RuntimeError("smtp down")

    monkeypatch.setattr(scheduler_service, "build_and_send_digest", failing_run)
    scheduler = DigestScheduler()
    scheduler.settings = Settings()

    asyncio.run(scheduler._send_job())

    assert calls == [True]


def test_send_job_sends_digest(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = []

    async def fake_run(settings, *, send=True, **kwargs):
        seen.append(settings)
        return DigestRun(status="sent")

    monkeypatch.setattr(scheduler_service, "build_and_send_digest", fake_run)
    scheduler = DigestScheduler()
    scheduler.settings = Settings()

    asyncio.run(scheduler._send_job())

    assert seen == [scheduler.settings]
