"""
Trending Service

The two calls the presentation layer makes into the trending subsystem:
reading a trending list and recording an article view.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncContextManager, Callable, Dict, List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_session
from repositories import ArticleRepository
from .cache import TrendingCache
from .debounce import DebounceLedger, SqlDebounceLedger
from .errors import InvalidArgument, StoreUnavailable
from .identifiers import ArticleId, parse_period
from .recorder import ViewRecorder, ViewerContext
from .windows import ArticleScore, RankingWindows


@dataclass
class ArticleSummary:
    """Trending card data for one article."""
    id: int
    title: str
    slug: str
    excerpt: Optional[str]
    published_at: Optional[str]
    view_count: int
    trending_score: float
    image_url: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "excerpt": self.excerpt,
            "published_at": self.published_at,
            "view_count": self.view_count,
            "trending_score": self.trending_score,
            "image_url": self.image_url,
        }


@dataclass
class TrendingResult:
    """A trending list and where it came from: store, cache, stale or empty."""
    period: str
    articles: List[ArticleSummary] = field(default_factory=list)
    source: str = "store"


@dataclass
class ViewRecordResult:
    """Outcome of recording a view, shaped for the HTTP response."""
    success: bool
    error: Optional[str] = None
    message: Optional[str] = None
    status_code: int = 200

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success}
        if self.error is not None:
            data["error"] = self.error
        if self.message is not None:
            data["message"] = self.message
        return data


class TrendingService:
    """Reads trending lists and records views for the web layer."""

    def __init__(
        self,
        windows: RankingWindows,
        cache: Optional[TrendingCache] = None,
        recorder: Optional[ViewRecorder] = None,
        ledger: Optional[DebounceLedger] = None,
        session_scope: Callable[[], AsyncContextManager[AsyncSession]] = get_session,
        max_limit: Optional[int] = None,
    ):
        self.windows = windows
        self.cache = cache or TrendingCache(settings.TRENDING_CACHE_TTL_SECONDS)
        self.recorder = recorder or ViewRecorder(windows, cache=self.cache)
        self.ledger = ledger or SqlDebounceLedger(session_scope)
        self._session_scope = session_scope
        self.max_limit = settings.TRENDING_MAX_LIMIT if max_limit is None else max_limit

    # ============================================
    # TRENDING READS
    # ============================================

    async def get_trending(self, period: Any, limit: Optional[int] = None) -> TrendingResult:
        """
        Trending articles for a period, highest score first.

        An absent window gives an empty list. If the store cannot be read,
        the last cached list (possibly stale) or an empty list is returned.

        Raises:
            InvalidArgument: unknown period
        """
        period = parse_period(period)
        limit = self._clamp_limit(limit)
        cache_key = (period.value, limit)

        cached = self.cache.get(cache_key)
        if cached is not None:
            return TrendingResult(period=period.value, articles=cached, source="cache")

        try:
            scores = await self.windows.top_n(period, limit)
            articles = await self._load_summaries(scores)
        except StoreUnavailable as e:
            logger.warning(f"Trending read for {period.value} failed, serving fallback: {e}")
            stale = self.cache.get_stale(cache_key)
            if stale is not None:
                return TrendingResult(period=period.value, articles=stale, source="stale")
            return TrendingResult(period=period.value, articles=[], source="empty")

        self.cache.set(cache_key, articles)
        return TrendingResult(period=period.value, articles=articles, source="store")

    async def get_trending_articles(self, period: Any, limit: Optional[int] = None) -> List[ArticleSummary]:
        """List-only form of get_trending."""
        result = await self.get_trending(period, limit)
        return result.articles

    def _clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            limit = settings.TRENDING_DEFAULT_LIMIT
        return max(1, min(int(limit), self.max_limit))

    async def _load_summaries(self, scores: List[ArticleScore]) -> List[ArticleSummary]:
        if not scores:
            return []

        try:
            async with self._session_scope() as session:
                rows = await ArticleRepository(session).get_published_by_ids([int(a) for a, _ in scores])
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Loading trending articles failed: {e}") from e

        by_id = {row.id: row for row in rows}
        summaries = []
        for article_id, score in scores:
            article = by_id.get(int(article_id))
            if article is None:
                continue
            summaries.append(ArticleSummary(
                id=article.id,
                title=article.title,
                slug=article.slug,
                excerpt=article.excerpt,
                published_at=_isoformat(article.published_at),
                view_count=article.view_count or 0,
                trending_score=score,
                image_url=article.image_url,
            ))
        return summaries

    # ============================================
    # VIEW RECORDING
    # ============================================

    async def record_article_view(self, article_id: Any, viewer_id: str) -> ViewRecordResult:
        """
        Count a view of a published article for a viewer.

        Debounced through the shared ledger and committed immediately. The
        persistent view counter is bumped best-effort afterwards. Never raises.
        """
        try:
            article_id = ArticleId.parse(article_id)
        except InvalidArgument as e:
            return ViewRecordResult(success=False, error=str(e), status_code=400)

        try:
            async with self._session_scope() as session:
                article = await ArticleRepository(session).get_published(article_id)
        except SQLAlchemyError as e:
            logger.error(f"Article lookup for view of {article_id} failed: {e}")
            return ViewRecordResult(success=False, error="Failed to record view", status_code=503)

        if article is None:
            return ViewRecordResult(
                success=False,
                error="News article not found or not published",
                status_code=404,
            )

        viewer = ViewerContext(viewer_id, self.ledger)
        try:
            if await self.recorder.is_debounced(article_id, viewer):
                return ViewRecordResult(success=True, message="View already recorded")
            await self.recorder.commit_view(article_id, viewer)
        except StoreUnavailable as e:
            logger.error(f"Recording view of {article_id} failed: {e}")
            return ViewRecordResult(success=False, error="Failed to record view", status_code=503)

        try:
            async with self._session_scope() as session:
                await ArticleRepository(session).increment_view_count(article_id)
        except SQLAlchemyError as e:
            # Trending scores are already updated; the persistent counter can lag
            logger.warning(f"Failed to bump view_count for {article_id}: {e}")

        return ViewRecordResult(success=True, message="View recorded successfully")


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None
