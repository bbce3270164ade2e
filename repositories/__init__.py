"""
SQLAlchemy-based Repositories

This package provides async repository pattern using SQLAlchemy ORM.

Usage:
    from repositories import ArticleRepository
    from database import get_session

    async with get_session() as session:
        repo = ArticleRepository(session)
        article = await repo.get_published(42)
"""

from .base import BaseRepository
from .articles import ArticleRepository
from .view_markers import ViewMarkerRepository
from .job_leases import JobLeaseRepository

__all__ = [
    "BaseRepository",
    "ArticleRepository",
    "ViewMarkerRepository",
    "JobLeaseRepository",
]
