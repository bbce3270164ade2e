"""
Trending Models

Storage for ranking windows, shared view markers and job leases.
"""
from typing import Optional

from sqlalchemy import String, Integer, Float, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class TrendingScore(Base):
    """
    One member of a sorted-set style ranking key.

    A key is either a live window (`trending:daily`) or an archive
    (`trending:daily:1718000000000`). Each member appears at most once per key.
    """
    __tablename__ = "trending_scores"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    member: Mapped[str] = mapped_column(String(50), nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    __table_args__ = (
        UniqueConstraint("key", "member", name="uq_trending_key_member"),
        Index("idx_trending_key_score", "key", "score"),
    )


class ViewMarker(Base):
    """
    Last counted view of an article by a viewer.

    `viewed_at` is epoch seconds. A marker older than the cooldown is
    equivalent to no marker and is removed by the purge job.
    """
    __tablename__ = "view_markers"

    viewer_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    article_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    viewed_at: Mapped[float] = mapped_column(Float, nullable=False, index=True)


class JobLease(Base):
    """
    Run-in-progress lease for a scheduled job, plus its last completed run.

    Times are epoch seconds.
    """
    __tablename__ = "job_leases"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    holder: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    expires_at: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    last_run_at: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
