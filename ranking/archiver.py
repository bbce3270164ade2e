"""
Trending Archiver

One archival run: for each archived period, snapshot the live window under
`trending:<period>:<epoch_ms>`, then keep only the newest archives.

Each period is its own unit of work. A failure in one period is logged and
recorded in the run result; the remaining periods still run and nothing is
raised to the caller. The next scheduled run is the retry.

Run state is explicit: the caller passes the previous `last_run_at` and gets
the new one back in the result.
"""
import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import AsyncContextManager, Callable, Dict, Iterable, List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from constants import ARCHIVED_PERIODS, TrendingPeriod
from database import get_session
from repositories import JobLeaseRepository
from .errors import PartialRotationFailure
from .windows import RankingWindows

ARCHIVE_JOB_NAME = "trending_archive"


@dataclass
class PeriodArchiveResult:
    """Outcome of archiving one period."""
    period: str
    archived_members: int = 0
    archive_key: Optional[str] = None
    pruned: int = 0
    skipped: bool = False
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class ArchiveRunResult:
    """Outcome of one archival run."""
    started_at: float
    previous_run_at: Optional[float] = None
    last_run_at: Optional[float] = None
    skipped: bool = False
    periods: List[PeriodArchiveResult] = field(default_factory=list)
    failures: List[PartialRotationFailure] = field(default_factory=list)

    @property
    def status(self) -> str:
        if self.skipped:
            return "skipped"
        if not self.failures:
            return "success"
        if len(self.failures) == len(self.periods):
            return "failed"
        return "partial"

    def to_dict(self) -> Dict:
        return {
            "status": self.status,
            "started_at": self.started_at,
            "previous_run_at": self.previous_run_at,
            "last_run_at": self.last_run_at,
            "periods": [
                {
                    "period": p.period,
                    "archived_members": p.archived_members,
                    "archive_key": p.archive_key,
                    "pruned": p.pruned,
                    "skipped": p.skipped,
                    "error": p.error,
                }
                for p in self.periods
            ],
        }


class TrendingArchiver:
    """Rotates trending windows into archives and enforces retention."""

    def __init__(
        self,
        windows: RankingWindows,
        periods: Iterable[TrendingPeriod] = ARCHIVED_PERIODS,
        retention: Optional[int] = None,
        lease_seconds: Optional[float] = None,
        session_scope: Optional[Callable[[], AsyncContextManager[AsyncSession]]] = get_session,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            windows: Window operations over the ranking store
            periods: Periods to archive, in order
            retention: Archives kept per period
            lease_seconds: Expiry of the cross-process run lease
            session_scope: Session factory for the lease; None disables the
                cross-process lease (the in-process guard still applies)
            clock: Epoch seconds source
        """
        self.windows = windows
        self.periods = tuple(periods)
        self.retention = settings.ARCHIVE_RETENTION if retention is None else retention
        self.lease_seconds = settings.ARCHIVE_LEASE_SECONDS if lease_seconds is None else lease_seconds
        self._session_scope = session_scope
        self._clock = clock
        self._running = asyncio.Lock()
        self._holder = f"archiver-{uuid.uuid4().hex[:12]}"

    async def run(self, now: Optional[float] = None, last_run_at: Optional[float] = None) -> ArchiveRunResult:
        """
        Archive every configured period once.

        Args:
            now: Epoch seconds stamped on the archives (defaults to the clock)
            last_run_at: When the previous run completed, as returned by it

        Returns:
            ArchiveRunResult; `last_run_at` is the value to pass next time.
            Never raises.
        """
        started_at = self._clock() if now is None else now
        result = ArchiveRunResult(started_at=started_at, previous_run_at=last_run_at, last_run_at=last_run_at)

        if self._running.locked():
            logger.warning("Trending archive already running in this process; skipping")
            result.skipped = True
            return result

        async with self._running:
            if not await self._acquire_lease(started_at):
                logger.warning("Trending archive lease held by another process; skipping")
                result.skipped = True
                return result

            logger.info("Starting trending archive run...")
            try:
                for period in self.periods:
                    period_result = await self._archive_period(period, started_at)
                    result.periods.append(period_result)
                    if period_result.error is not None:
                        result.failures.append(PartialRotationFailure(period.value, period_result.error))

                result.last_run_at = started_at
            finally:
                await self._release_lease(result.last_run_at)

        logger.info(f"Trending archive run finished: {result.status}")
        return result

    async def _archive_period(self, period: TrendingPeriod, now: float) -> PeriodArchiveResult:
        period_result = PeriodArchiveResult(period=period.value)
        try:
            current = await self.windows.read_all(period)
            if not current:
                logger.info(f"No data to archive for {period.value}")
                period_result.skipped = True
                return period_result

            archive_key = await self.windows.rotate(period, now)
            if archive_key is None:
                # Emptied between the read and the rename
                period_result.skipped = True
                return period_result

            period_result.archive_key = archive_key
            period_result.archived_members = len(current)
            period_result.pruned = await self.windows.prune_archives(period, self.retention)

            if period_result.pruned:
                logger.info(f"Deleted {period_result.pruned} old archives for {period.value}")
            logger.info(f"Archived {len(current)} {period.value} trends to {archive_key}")

        except Exception as e:
            logger.exception(f"Archiving {period.value} trends failed: {e}")
            period_result.error = str(e) or e.__class__.__name__

        return period_result

    async def _acquire_lease(self, now: float) -> bool:
        if self._session_scope is None:
            return True
        try:
            async with self._session_scope() as session:
                return await JobLeaseRepository(session).try_acquire(
                    ARCHIVE_JOB_NAME, self._holder, now, self.lease_seconds
                )
        except SQLAlchemyError as e:
            logger.error(f"Could not take trending archive lease: {e}")
            return False

    async def _release_lease(self, last_run_at: Optional[float]) -> None:
        if self._session_scope is None:
            return
        try:
            async with self._session_scope() as session:
                await JobLeaseRepository(session).release(ARCHIVE_JOB_NAME, self._holder, last_run_at)
        except SQLAlchemyError as e:
            # The lease expires on its own
            logger.error(f"Could not release trending archive lease: {e}")

    async def load_last_run_at(self) -> Optional[float]:
        """Last completed run time persisted with the lease, if any."""
        if self._session_scope is None:
            return None
        try:
            async with self._session_scope() as session:
                return await JobLeaseRepository(session).get_last_run_at(ARCHIVE_JOB_NAME)
        except SQLAlchemyError as e:
            logger.error(f"Could not read last trending archive run: {e}")
            return None
