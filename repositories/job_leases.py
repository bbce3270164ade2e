"""
Job Lease Repository

Expiring run-in-progress leases for scheduled jobs.
"""
from typing import Optional

from sqlalchemy import update, or_
from sqlalchemy.dialects.sqlite import insert

from database.models import JobLease
from .base import BaseRepository


class JobLeaseRepository(BaseRepository[JobLease]):
    """Repository for scheduled job leases."""

    model = JobLease

    async def try_acquire(self, name: str, holder: str, now: float, ttl_seconds: float) -> bool:
        """
        Take the lease if it is free or expired.

        A single conditional UPDATE decides ownership, so two processes
        racing for the same lease cannot both win.

        Returns:
            True if `holder` now owns the lease
        """
        # Make sure the row exists; does nothing if it already does
        await self.session.execute(
            insert(JobLease).values(name=name).on_conflict_do_nothing(index_elements=[JobLease.name])
        )

        stmt = (
            update(JobLease)
            .where(
                JobLease.name == name,
                or_(JobLease.expires_at.is_(None), JobLease.expires_at <= now),
            )
            .values(holder=holder, expires_at=now + ttl_seconds)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def release(self, name: str, holder: str, last_run_at: Optional[float] = None) -> None:
        """Release a lease held by `holder`, optionally recording the completed run."""
        values = {"holder": None, "expires_at": None}
        if last_run_at is not None:
            values["last_run_at"] = last_run_at

        stmt = (
            update(JobLease)
            .where(JobLease.name == name, JobLease.holder == holder)
            .values(**values)
        )
        await self.session.execute(stmt)

    async def get_last_run_at(self, name: str) -> Optional[float]:
        """Get the last completed run time for a job."""
        lease = await self.get(name)
        return lease.last_run_at if lease else None
