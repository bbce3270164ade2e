"""
Article Repository

Read access for trending cards and the persistent view counter.
"""
from typing import List, Optional, Sequence

from sqlalchemy import select, update, func

from constants import ArticleStatus
from database.models import Article
from .base import BaseRepository


class ArticleRepository(BaseRepository[Article]):
    """Repository for news article operations."""

    model = Article

    async def get_published(self, article_id: int) -> Optional[Article]:
        """Get an article only if it is published."""
        stmt = select(Article).where(
            Article.id == int(article_id),
            Article.status == ArticleStatus.PUBLISHED.value,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_published_by_ids(self, article_ids: List[int]) -> Sequence[Article]:
        """
        Get published articles among the given IDs.

        Args:
            article_ids: Candidate article IDs (e.g. from a trending window)

        Returns:
            Published articles, unordered. Missing or unpublished IDs are dropped.
        """
        if not article_ids:
            return []

        stmt = select(Article).where(
            Article.id.in_(article_ids),
            Article.status == ArticleStatus.PUBLISHED.value,
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def increment_view_count(self, article_id: int) -> int:
        """
        Atomically bump the persistent view counter.

        Returns:
            Number of rows updated (0 if the article does not exist)
        """
        stmt = (
            update(Article)
            .where(Article.id == int(article_id))
            .values(view_count=Article.view_count + 1, updated_at=func.now())
        )
        result = await self.session.execute(stmt)
        return result.rowcount
