from __future__ import annotations

import asyncio

from app.schemas.audit import AuditResult, AuditRunResponse
from app.services.scheduler import SchedulerService


class FakeRefreshService:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.closed = False

    async def refresh_stale(self):
        if self.error:
            raise self.error
        return self.response

    async def aclose(self):
        self.closed = True


def test_run_refresh_returns_processed_count() -> None:
    fake = FakeRefreshService(
        AuditRunResponse(
            processed=2,
            results=[
                AuditResult(domain="a.com", success=True),
                AuditResult(domain="b.com", success=False, error="boom"),
            ],
        )
    )
    service = SchedulerService(service_factory=lambda: fake)

    assert asyncio.run(service.run_refresh()) == 2
    assert fake.closed is True


def test_run_refresh_without_credentials_is_skipped() -> None:
    def factory():
        raise ValueError("DATAFORSEO credentials not configured")

    service = SchedulerService(service_factory=factory)

    assert asyncio.run(service.run_refresh()) == 0


def test_run_refresh_failure_is_contained() -> None:
    fake = FakeRefreshService(error=RuntimeError("database down"))
    service = SchedulerService(service_factory=lambda: fake)

    assert asyncio.run(service.run_refresh()) == 0
    assert fake.closed is True


def test_start_registers_cron_job() -> None:
    service = SchedulerService(service_factory=FakeRefreshService)

    async def start_and_stop():
        await service.start("0 3 * * *")
        job = service.scheduler.get_job(SchedulerService.JOB_ID)
        running = service.scheduler.running
        await service.shutdown()
        return job, running

    job, running = asyncio.run(start_and_stop())

    assert running is True
    assert job is not None
    assert str(job.trigger).startswith("cron[")
    assert job.max_instances == 1
