"""
Scheduler - Trending maintenance jobs

Job Schedule:
1. Trending Archive: Daily at 03:00 (ARCHIVE_TIMEZONE) - rotate daily/weekly/monthly
   windows into timestamped archives and keep the newest ARCHIVE_RETENTION
2. View Marker Purge: Every VIEW_MARKER_PURGE_HOURS - drop debounce markers
   older than the view cooldown

Usage:
    python scheduler.py              # Run scheduler daemon
    python scheduler.py --once       # Run the archive job once and exit
"""
import asyncio
import sys
import time
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from config import settings, ensure_directories
from database import init_engine, close_engine
from ranking import (
    ArchiveRunResult,
    RankingWindows,
    SqlDebounceLedger,
    SqlRankingStore,
    StoreUnavailable,
    TrendingArchiver,
)
from utils import logger, init_logging


class TrendingScheduler:
    """
    Scheduler for trending maintenance.

    Holds the archive job's run state explicitly: the completion time of the
    previous run is handed to the archiver and replaced by what it returns.
    """

    def __init__(
        self,
        archiver: Optional[TrendingArchiver] = None,
        ledger: Optional[SqlDebounceLedger] = None,
    ):
        self.scheduler = AsyncIOScheduler(timezone=settings.ARCHIVE_TIMEZONE)
        self.archiver = archiver or TrendingArchiver(RankingWindows(SqlRankingStore()))
        self.ledger = ledger or SqlDebounceLedger()
        self.last_run_at: Optional[float] = None
        self._last_run_result: Optional[ArchiveRunResult] = None

    def setup(self):
        """Setup scheduled jobs."""
        ensure_directories()

        # Job 1: Trending archive daily at 03:00
        # max_instances=1 keeps a slow run from overlapping the next trigger
        self.scheduler.add_job(
            self.archive_trending,
            CronTrigger(
                hour=settings.ARCHIVE_CRON_HOUR,
                minute=settings.ARCHIVE_CRON_MINUTE,
                timezone=settings.ARCHIVE_TIMEZONE,
            ),
            id="archive_trending",
            name="Trending Archive",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        # Job 2: Expired view marker purge
        self.scheduler.add_job(
            self.purge_view_markers,
            IntervalTrigger(hours=settings.VIEW_MARKER_PURGE_HOURS),
            id="purge_view_markers",
            name="View Marker Purge",
            replace_existing=True,
            max_instances=1,
        )

        logger.info("Scheduler setup complete with 2 jobs")
        self._log_schedule()

    def _log_schedule(self):
        """Log current job schedule."""
        jobs = self.scheduler.get_jobs()
        logger.info(f"Scheduled jobs ({len(jobs)}):")
        for job in jobs:
            logger.info(f"  - {job.name}: {job.trigger}")

    async def archive_trending(self) -> ArchiveRunResult:
        """
        Job: Rotate trending windows into archives.

        The archiver never raises; per-window failures are in the result.
        """
        if self.last_run_at is None:
            self.last_run_at = await self.archiver.load_last_run_at()

        result = await self.archiver.run(last_run_at=self.last_run_at)
        self.last_run_at = result.last_run_at
        self._last_run_result = result

        for failure in result.failures:
            logger.warning(f"Trending archive: {failure}")
        return result

    async def purge_view_markers(self) -> int:
        """Job: Delete debounce markers older than the view cooldown."""
        cutoff = time.time() - settings.VIEW_COOLDOWN_SECONDS
        try:
            return await self.ledger.purge_expired(cutoff)
        except StoreUnavailable as e:
            logger.error(f"View marker purge failed: {e}")
            return 0

    def start(self):
        """Start the scheduler."""
        self.setup()
        self.scheduler.start()
        logger.info("Scheduler started - Press Ctrl+C to stop")

    def stop(self):
        """Stop the scheduler. A window already being rotated finishes on its own."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")

    def run_once(self) -> bool:
        """Run the archive job once and exit."""
        ensure_directories()

        async def _run() -> ArchiveRunResult:
            await init_engine()
            try:
                return await self.archive_trending()
            finally:
                await close_engine()

        logger.info("Running trending archive once...")
        result = asyncio.run(_run())

        if result.status in ("success", "skipped"):
            logger.info(f"Trending archive completed: {result.status}")
            return True
        logger.error(f"Trending archive finished with status {result.status}")
        return False


def run_scheduler():
    """Run the scheduler as main process until SIGINT or SIGTERM."""
    import signal

    async def _serve():
        await init_engine()
        scheduler = TrendingScheduler()
        scheduler.start()

        stop_requested = asyncio.Event()
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, stop_requested.set)

        try:
            await stop_requested.wait()
            logger.info("Received shutdown signal")
        finally:
            scheduler.stop()
            await close_engine()

    asyncio.run(_serve())


def main():
    """Main entry point with CLI arguments."""
    import argparse

    parser = argparse.ArgumentParser(description="News Trending Scheduler")
    parser.add_argument("--once", action="store_true", help="Run the archive job once and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args()

    init_logging(app_name="scheduler")
    if args.verbose:
        logger.info("Verbose mode enabled")

    if args.once:
        result = TrendingScheduler().run_once()
        sys.exit(0 if result else 1)
    else:
        run_scheduler()


if __name__ == "__main__":
    main()
