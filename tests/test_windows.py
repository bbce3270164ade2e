import random

import pytest

from constants import TrendingPeriod
from ranking import ArticleId

DAILY = TrendingPeriod.DAILY


@pytest.mark.asyncio
async def test_top_n_returns_highest_scores_descending(windows):
    rng = random.Random(7)
    scores = {article_id: rng.randint(1, 50) for article_id in range(1, 31)}
    for article_id, score in scores.items():
        await windows.increment(DAILY, ArticleId(article_id), score)

    top = await windows.top_n(DAILY, 5)

    assert len(top) == 5
    assert [s for _, s in top] == sorted(scores.values(), reverse=True)[:5]
    assert all(scores[int(a)] == s for a, s in top)


@pytest.mark.asyncio
async def test_top_n_ties_are_stable_across_reads(windows):
    for article_id in [5, 12, 3, 40]:
        await windows.increment(DAILY, ArticleId(article_id), 2)

    first = await windows.top_n(DAILY, 4)
    second = await windows.top_n(DAILY, 4)

    assert first == second
    assert sorted(int(a) for a, _ in first) == [3, 5, 12, 40]


@pytest.mark.asyncio
async def test_top_n_edge_cases(windows):
    await windows.increment(DAILY, ArticleId(1), 1)

    assert await windows.top_n(DAILY, 0) == []
    assert await windows.top_n(DAILY, 10) == [(1, 1.0)]
    assert await windows.top_n(TrendingPeriod.WEEKLY, 10) == []


@pytest.mark.asyncio
async def test_top_n_skips_foreign_members(windows, store):
    await store.increment_score("trending:daily", "not-an-id", 100)
    await windows.increment(DAILY, ArticleId(9), 1)

    assert await windows.top_n(DAILY, 5) == [(9, 1.0)]


@pytest.mark.asyncio
async def test_rotate_empty_window_creates_no_archive(windows):
    assert await windows.rotate(DAILY, now=1_700_000_000) is None
    assert await windows.list_archives(DAILY) == []


@pytest.mark.asyncio
async def test_rotate_leaves_live_window_absent(windows):
    await windows.increment(DAILY, ArticleId(42), 1)

    key = await windows.rotate(DAILY, now=1_700_000_000.5)

    assert key == "trending:daily:1700000000500"
    assert await windows.top_n(DAILY, 10) == []
    assert await windows.list_archives(DAILY) == [key]


@pytest.mark.asyncio
async def test_archives_sorted_by_embedded_timestamp(windows, store):
    # Lexical order would put 1000 before 999
    for ts in ["1000", "999", "20000"]:
        await store.increment_score(f"trending:daily:{ts}", "1", 1)

    assert await windows.list_archives(DAILY) == [
        "trending:daily:999", "trending:daily:1000", "trending:daily:20000",
    ]


@pytest.mark.asyncio
async def test_retention_keeps_most_recent(windows):
    base = 1_700_000_000
    keys = []
    for day in range(10):
        await windows.increment(DAILY, ArticleId(day + 1), 1)
        keys.append(await windows.rotate(DAILY, now=base + day * 86400))
        await windows.prune_archives(DAILY, keep=7)

    remaining = await windows.list_archives(DAILY)
    assert len(remaining) == 7
    assert remaining == keys[-7:]


@pytest.mark.asyncio
async def test_prune_under_cap_deletes_nothing(windows):
    await windows.increment(DAILY, ArticleId(1), 1)
    await windows.rotate(DAILY, now=1_700_000_000)

    assert await windows.prune_archives(DAILY, keep=7) == 0
    assert len(await windows.list_archives(DAILY)) == 1


@pytest.mark.asyncio
async def test_rotate_twice_in_same_millisecond_keeps_both_archives(windows):
    await windows.increment(DAILY, ArticleId(1), 1)
    first = await windows.rotate(DAILY, now=1_700_000_000)
    await windows.increment(DAILY, ArticleId(2), 1)
    second = await windows.rotate(DAILY, now=1_700_000_000)

    assert first == "trending:daily:1700000000000"
    assert second == "trending:daily:1700000000001"
    assert await windows.list_archives(DAILY) == [first, second]
    assert await windows.store.range_desc_with_scores(first, 0, -1) == [("1", 1.0)]
    assert await windows.store.range_desc_with_scores(second, 0, -1) == [("2", 1.0)]


@pytest.mark.asyncio
async def test_increment_all_writes_each_window(windows):
    scores = await windows.increment_all([DAILY, TrendingPeriod.WEEKLY], ArticleId(3), 2)

    assert scores == [2.0, 2.0]
    assert await windows.top_n(DAILY, 1) == [(3, 2.0)]
    assert await windows.top_n(TrendingPeriod.WEEKLY, 1) == [(3, 2.0)]
    assert await windows.increment_all([], ArticleId(3)) == []
