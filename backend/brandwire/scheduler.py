"""
APScheduler setup for brand RSS ingestion.

One :class:`IngestionScheduler` per process owns the recurring trigger and the
Idle/Running/Stopped state. Scheduled ticks and admin triggers go through the
same :meth:`IngestionScheduler.run_once`, so at most one batch runs at a time.
"""

import asyncio
import enum
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from brandwire.config import get_settings
from brandwire.database import SessionLocal
from brandwire.services.feeds import BrandFeedService, RunResult

logger = logging.getLogger(__name__)

JOB_ID = "brand_rss_fetch"


class SchedulerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


async def run_brand_update_batch() -> RunResult:
    """Fetch all eligible brand feeds with a dedicated session."""
    db = SessionLocal()
    try:
        service = BrandFeedService(db)
        return await service.fetch_all_brand_updates()
    finally:
        db.close()


class IngestionScheduler:

    def __init__(
        self,
        run_batch: Callable[[], Awaitable[RunResult]] = run_brand_update_batch,
        interval_minutes: Optional[int] = None,
        timezone: Optional[str] = None,
    ):
        settings = get_settings()
        self.run_batch = run_batch
        self.interval_minutes = interval_minutes or settings.rss_fetch_interval_minutes
        self.timezone = timezone or settings.timezone

        self.state = SchedulerState.IDLE
        self.last_result: Optional[RunResult] = None
        self.last_error: Optional[str] = None
        self.last_started_at: Optional[datetime] = None
        self.last_finished_at: Optional[datetime] = None

        self._scheduler: Optional[AsyncIOScheduler] = None
        self._background_tasks: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    def start(self):
        """Register the recurring fetch. Call once the database is reachable."""
        if self.state is SchedulerState.STOPPED:
            logger.warning("Ingestion scheduler was stopped; not restarting")
            return
        if self._scheduler is not None and self._scheduler.running:
            logger.warning("Ingestion scheduler already started")
            return

        self._scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            timezone=self.timezone,
        )
        self._scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=JOB_ID,
            name=f'Brand RSS fetch (every {self.interval_minutes} min)',
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()

        job = self._scheduler.get_job(JOB_ID)
        logger.info(f"Ingestion scheduler started, next fetch: {job.next_run_time if job else None}")

    def stop(self):
        """Cancel the recurring trigger without waiting for an in-flight batch."""
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None

        if self.state is SchedulerState.RUNNING:
            logger.info("Ingestion scheduler stopping; in-flight batch left to finish")
        self.state = SchedulerState.STOPPED
        logger.info("Ingestion scheduler stopped")

    async def run_once(self) -> Optional[RunResult]:
        """Run one batch unless one is already running. Never raises."""
        if self.state is SchedulerState.RUNNING:
            logger.info("RSS fetch already running, skipping trigger")
            return None
        if self.state is SchedulerState.STOPPED:
            logger.debug("Ingestion scheduler stopped, ignoring trigger")
            return None

        self._claim()
        return await self._execute()

    def _claim(self):
        # No await between the state check and this call
        self.state = SchedulerState.RUNNING
        self.last_started_at = datetime.utcnow()
        logger.info("Starting RSS fetch for all brands")

    async def _execute(self) -> Optional[RunResult]:
        result = None
        try:
            result = await self.run_batch()
            self.last_result = result
            self.last_error = None
            logger.info(f"RSS fetch completed: {result.total_new_updates} new updates")
        except Exception as e:
            self.last_error = str(e) or type(e).__name__
            logger.exception(f"RSS fetch failed: {e}")
        finally:
            self.last_finished_at = datetime.utcnow()
            if self.state is SchedulerState.RUNNING:
                self.state = SchedulerState.IDLE

        return result

    def trigger_now(self) -> dict:
        """Start a batch in the background and return without waiting for it."""
        if self.state is SchedulerState.STOPPED:
            return {"started": False, "reason": "scheduler stopped"}
        if self.state is SchedulerState.RUNNING:
            logger.info("Manual RSS fetch requested while a fetch is running")
            return {"started": False, "reason": "already running"}

        logger.info("Manual RSS fetch triggered")
        loop = asyncio.get_running_loop()
        self._claim()
        task = loop.create_task(self._execute())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return {"started": True}

    def status(self) -> dict:
        next_run = None
        if self._scheduler is not None and self._scheduler.running:
            job = self._scheduler.get_job(JOB_ID)
            if job and job.next_run_time:
                next_run = job.next_run_time.isoformat()

        return {
            "state": self.state.value,
            "interval_minutes": self.interval_minutes,
            "next_run": next_run,
            "last_started_at": self.last_started_at.isoformat() if self.last_started_at else None,
            "last_finished_at": self.last_finished_at.isoformat() if self.last_finished_at else None,
            "last_error": self.last_error,
            "last_result": self.last_result.to_dict() if self.last_result else None,
        }


# Global scheduler instance
_ingestion_scheduler: Optional[IngestionScheduler] = None


def get_ingestion_scheduler() -> IngestionScheduler:
    """Get or create the process-wide scheduler."""
    global _ingestion_scheduler
    if _ingestion_scheduler is None:
        _ingestion_scheduler = IngestionScheduler()
    return _ingestion_scheduler


def start_scheduler():
    """Start the scheduler (call this from FastAPI startup)."""
    get_ingestion_scheduler().start()


def stop_scheduler():
    """Stop the scheduler (call this from FastAPI shutdown)."""
    global _ingestion_scheduler
    if _ingestion_scheduler is not None:
        _ingestion_scheduler.stop()
        _ingestion_scheduler = None
