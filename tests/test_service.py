from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from constants import TrendingPeriod
from database import get_session
from database.models import Article
from ranking import (
    ArticleId,
    InvalidArgument,
    StoreUnavailable,
    TrendingCache,
    TrendingService,
    ViewRecorder,
)
from conftest import add_articles, broken_session


@pytest.fixture
def service(windows):
    cache = TrendingCache(ttl_seconds=30)
    recorder = ViewRecorder(windows, cache=cache, settle_delay=0, cooldown=3600)
    return TrendingService(windows, cache=cache, recorder=recorder)


async def view_count(article_id: int) -> int:
    async with get_session() as session:
        result = await session.execute(select(Article.view_count).where(Article.id == article_id))
        return result.scalar_one()


# ============================================
# TRENDING READS
# ============================================

@pytest.mark.asyncio
async def test_trending_articles_joined_and_ordered(service, windows):
    await add_articles((1, "Budget vote"), (2, "Storm warning"), (3, "Derby result"))
    await windows.increment(TrendingPeriod.DAILY, ArticleId(1), 2)
    await windows.increment(TrendingPeriod.DAILY, ArticleId(2), 5)
    await windows.increment(TrendingPeriod.DAILY, ArticleId(3), 1)

    articles = await service.get_trending_articles("daily", 2)

    assert [a.id for a in articles] == [2, 1]
    assert articles[0].trending_score == 5
    assert articles[0].title == "Storm warning"
    assert articles[0].image_url == "/images/2.jpg"
    assert articles[0].published_at == "2024-05-01T09:30:00"


@pytest.mark.asyncio
async def test_unpublished_and_missing_articles_are_dropped(service, windows):
    await add_articles((1, "Live"), (2, "Draft", "draft"))
    for article_id in (1, 2, 99):
        await windows.increment(TrendingPeriod.WEEKLY, ArticleId(article_id), 1)

    articles = await service.get_trending_articles("weekly", 10)

    assert [a.id for a in articles] == [1]


@pytest.mark.asyncio
async def test_absent_window_after_rotation_is_empty(service, windows):
    await add_articles((1, "Live"))
    await windows.increment(TrendingPeriod.DAILY, ArticleId(1), 1)
    await windows.rotate(TrendingPeriod.DAILY, now=1_700_000_000)

    result = await service.get_trending("daily", 10)

    assert result.articles == []
    assert result.source == "store"


@pytest.mark.asyncio
async def test_unknown_period_is_rejected(service):
    with pytest.raises(InvalidArgument):
        await service.get_trending("hourly", 10)


@pytest.mark.asyncio
async def test_limit_is_clamped(service, windows):
    windows.top_n = AsyncMock(return_value=[])

    await service.get_trending("daily", 500)
    await service.get_trending("monthly", 0)

    assert windows.top_n.await_args_list[0].args == (TrendingPeriod.DAILY, 100)
    assert windows.top_n.await_args_list[1].args == (TrendingPeriod.MONTHLY, 1)


@pytest.mark.asyncio
async def test_reads_are_cached_until_a_view_is_recorded(service, windows):
    await add_articles((1, "Live"))
    await windows.increment(TrendingPeriod.DAILY, ArticleId(1), 1)

    assert (await service.get_trending("daily", 5)).source == "store"
    assert (await service.get_trending("daily", 5)).source == "cache"

    await service.record_article_view(1, "session-a")

    result = await service.get_trending("daily", 5)
    assert result.source == "store"
    assert result.articles[0].trending_score == 2


@pytest.mark.asyncio
async def test_store_outage_serves_stale_list(service, windows):
    await add_articles((1, "Live"))
    await windows.increment(TrendingPeriod.DAILY, ArticleId(1), 1)
    await service.get_trending("daily", 5)
    service.cache.invalidate()

    windows.top_n = AsyncMock(side_effect=StoreUnavailable("store down"))

    stale = await service.get_trending("daily", 5)
    assert stale.source == "stale"
    assert [a.id for a in stale.articles] == [1]

    empty = await service.get_trending("weekly", 5)
    assert empty.source == "empty"
    assert empty.articles == []


# ============================================
# VIEW RECORDING
# ============================================

@pytest.mark.asyncio
async def test_record_view_updates_scores_and_view_count(service, windows):
    await add_articles((42, "Big story"))

    result = await service.record_article_view("42", "session-a")

    assert result.success
    assert result.to_dict() == {"success": True, "message": "View recorded successfully"}
    assert await windows.top_n(TrendingPeriod.DAILY, 1) == [(42, 1.0)]
    assert await view_count(42) == 1


@pytest.mark.asyncio
async def test_repeat_view_from_same_session_is_debounced(service, windows):
    await add_articles((42, "Big story"))

    await service.record_article_view(42, "session-a")
    repeat = await service.record_article_view(42, "session-a")
    await service.record_article_view(42, "session-b")

    assert repeat.success
    assert repeat.message == "View already recorded"
    assert await windows.top_n(TrendingPeriod.DAILY, 1) == [(42, 2.0)]
    assert await view_count(42) == 2


@pytest.mark.asyncio
async def test_record_view_rejects_invalid_id(service, windows):
    result = await service.record_article_view("abc", "session-a")

    assert not result.success
    assert result.status_code == 400
    assert "Invalid article ID" in result.error
    assert await windows.top_n(TrendingPeriod.DAILY, 1) == []


@pytest.mark.asyncio
async def test_record_view_of_unpublished_article_is_not_found(service, windows):
    await add_articles((5, "Draft", "draft"))

    for article_id in (5, 6):
        result = await service.record_article_view(article_id, "session-a")
        assert not result.success
        assert result.status_code == 404

    assert await windows.top_n(TrendingPeriod.DAILY, 1) == []


@pytest.mark.asyncio
async def test_record_view_store_failure(service, windows):
    await add_articles((42, "Big story"))
    windows.increment_all = AsyncMock(side_effect=StoreUnavailable("store down"))

    result = await service.record_article_view(42, "session-a")

    assert not result.success
    assert result.status_code == 503
    assert result.error == "Failed to record view"
    # No marker written, so the next view may retry
    assert await service.ledger.last_viewed("session-a", 42) is None
    assert await view_count(42) == 0


@pytest.mark.asyncio
async def test_record_view_database_down(windows):
    service = TrendingService(windows, session_scope=broken_session)

    result = await service.record_article_view(42, "session-a")

    assert result.status_code == 503
