"""Scheduler service for the periodic audit refresh using APScheduler."""

import logging
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.core.config import settings
from app.services.audit_service import AuditRefreshService, build_audit_refresh_service

logger = logging.getLogger(__name__)


class SchedulerService:
    """Service for running the stale-audit refresh on a cron schedule.

    Each tick builds a fresh refresh service and runs one batch. A tick
    that fails is logged; the next tick picks up whatever is still stale.
    """

    JOB_ID = "refresh_stale_audits"

    def __init__(
        self,
        service_factory: Callable[[], AuditRefreshService] = build_audit_refresh_service,
    ):
        """Initialize the scheduler service."""
        self.scheduler = AsyncIOScheduler()
        self.service_factory = service_factory

    async def start(self, cron: Optional[str] = None) -> None:
        """Start the scheduler with the audit refresh job."""
        cron = cron or settings.AUDIT_REFRESH_CRON
        logger.info(f"[Scheduler] Starting scheduler service ({cron})...")

        self.scheduler.add_job(
            self.run_refresh,
            CronTrigger.from_crontab(cron, timezone="UTC"),
            id=self.JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        self.scheduler.start()
        logger.info("[Scheduler] Scheduler started successfully")

    async def shutdown(self) -> None:
        """Shutdown the scheduler gracefully."""
        if not self.scheduler.running:
            return
        logger.info("[Scheduler] Shutting down scheduler service...")
        self.scheduler.shutdown(wait=False)
        logger.info("[Scheduler] Scheduler shutdown complete")

    async def run_refresh(self) -> int:
        """Run one batch refresh.

        Returns:
            Number of domains processed, 0 when the run could not start.
        """
        try:
            service = self.service_factory()
        except ValueError as e:
            logger.error(f"[Scheduler] Audit refresh skipped: {e}")
            return 0

        try:
            response = await service.refresh_stale()
        except Exception as e:
            logger.error(f"[Scheduler] Audit refresh failed: {e}")
            return 0
        finally:
            await service.aclose()

        failed = sum(1 for result in response.results if not result.success)
        logger.info(
            f"[Scheduler] Audit refresh processed {response.processed} domain(s), {failed} failed"
        )
        return response.processed


# Global scheduler instance
scheduler_service = SchedulerService()
