"""APScheduler integration for the expiry reaper.

``ReaperSchedule`` owns its scheduler; ``stop()`` is the cancellation handle.
"""

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from coordinator.engine.reaper import ExpiryReaper

logger = logging.getLogger(__name__)

REAPER_JOB_ID = "expiry_reaper"


async def run_sweep(reaper: ExpiryReaper) -> int:
    """Scheduled entry point; runs on the event loop, not in a worker thread."""
    try:
        return reaper.sweep()
    except Exception as e:
        logger.error(f"Expiry sweep failed: {e}")
        raise


class ReaperSchedule:
    def __init__(self, reaper: ExpiryReaper, interval_seconds: int):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.reaper = reaper
        self.interval_seconds = interval_seconds
        self.scheduler = AsyncIOScheduler()
        self._started = False

    def start(self):
        """Start the scheduler with the reaper job. Needs a running event loop."""
        self.scheduler.add_job(
            run_sweep,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            args=[self.reaper],
            id=REAPER_JOB_ID,
            name="Expiry reaper",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.interval_seconds,
        )
        self.scheduler.start()
        self._started = True
        logger.info(f"Expiry reaper scheduled every {self.interval_seconds}s")

    async def stop(self):
        """Shut down the scheduler; returns once it has stopped. Safe to repeat."""
        if not self._started:
            return
        self._started = False
        # AsyncIOScheduler.shutdown only queues itself on the loop
        self.scheduler.shutdown(wait=False)
        while self.scheduler.running:
            await asyncio.sleep(0)
        logger.info("Expiry reaper stopped")

    @property
    def running(self) -> bool:
        return self._started and self.scheduler.running

    def status(self) -> dict:
        """Current schedule and reaper bookkeeping for the API."""
        job = self.scheduler.get_job(REAPER_JOB_ID)
        next_run = getattr(job, "next_run_time", None)
        return {
            "running": self.running,
            "interval_seconds": self.interval_seconds,
            "next_run": str(next_run) if next_run else None,
            "reaper": self.reaper.status(),
        }
