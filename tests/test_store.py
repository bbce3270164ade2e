import pytest
from sqlalchemy.exc import OperationalError

from ranking import SqlRankingStore, StoreUnavailable
from conftest import broken_session


@pytest.mark.asyncio
async def test_increment_creates_then_accumulates(store):
    assert await store.increment_score("trending:daily", "42", 1) == 1
    assert await store.increment_score("trending:daily", "42", 2.5) == 3.5
    assert await store.range_desc_with_scores("trending:daily", 0, -1) == [("42", 3.5)]


@pytest.mark.asyncio
async def test_members_are_unique_per_key(store):
    await store.increment_score("trending:daily", "1", 1)
    await store.increment_score("trending:weekly", "1", 5)
    await store.increment_score("trending:daily", "1", 1)

    assert await store.range_desc_with_scores("trending:daily", 0, -1) == [("1", 2)]
    assert await store.range_desc_with_scores("trending:weekly", 0, -1) == [("1", 5)]


@pytest.mark.asyncio
async def test_range_orders_by_score_then_member_descending(store):
    for member, score in [("1", 5), ("2", 9), ("3", 5), ("4", 1)]:
        await store.increment_score("k", member, score)

    assert await store.range_desc_with_scores("k", 0, -1) == [
        ("2", 9), ("3", 5), ("1", 5), ("4", 1),
    ]
    assert await store.range_desc_with_scores("k", 1, 2) == [("3", 5), ("1", 5)]
    assert await store.range_desc_with_scores("k", -2, -1) == [("1", 5), ("4", 1)]
    assert await store.range_desc_with_scores("k", 3, 1) == []


@pytest.mark.asyncio
async def test_range_of_absent_key_is_empty(store):
    assert await store.range_desc_with_scores("trending:daily", 0, 9) == []


@pytest.mark.asyncio
async def test_rename_moves_contents(store):
    await store.increment_score("trending:daily", "42", 3)

    assert await store.rename_key("trending:daily", "trending:daily:1000") is True
    assert await store.range_desc_with_scores("trending:daily", 0, -1) == []
    assert await store.range_desc_with_scores("trending:daily:1000", 0, -1) == [("42", 3)]


@pytest.mark.asyncio
async def test_rename_missing_key_reports_not_found_and_keeps_destination(store):
    await store.increment_score("dest", "7", 1)

    assert await store.rename_key("missing", "dest") is False
    assert await store.range_desc_with_scores("dest", 0, -1) == [("7", 1)]


@pytest.mark.asyncio
async def test_rename_replaces_existing_destination(store):
    await store.increment_score("src", "1", 2)
    await store.increment_score("dest", "1", 10)
    await store.increment_score("dest", "9", 4)

    assert await store.rename_key("src", "dest") is True
    assert await store.range_desc_with_scores("dest", 0, -1) == [("1", 2)]


@pytest.mark.asyncio
async def test_increment_after_rename_starts_fresh_window(store):
    await store.increment_score("trending:daily", "42", 5)
    await store.rename_key("trending:daily", "trending:daily:1000")
    await store.increment_score("trending:daily", "42", 1)

    assert await store.range_desc_with_scores("trending:daily", 0, -1) == [("42", 1)]
    assert await store.range_desc_with_scores("trending:daily:1000", 0, -1) == [("42", 5)]


@pytest.mark.asyncio
async def test_list_keys_by_prefix(store):
    for key in ["trending:daily", "trending:daily:1", "trending:daily:2", "trending:weekly:3", "trending:daily_x:4"]:
        await store.increment_score(key, "1", 1)

    keys = await store.list_keys_by_prefix("trending:daily:")
    assert sorted(keys) == ["trending:daily:1", "trending:daily:2"]


@pytest.mark.asyncio
async def test_list_keys_prefix_is_literal(store):
    await store.increment_score("a%b:1", "1", 1)
    await store.increment_score("axb:1", "1", 1)

    assert await store.list_keys_by_prefix("a%b:") == ["a%b:1"]


@pytest.mark.asyncio
async def test_delete_keys_counts_keys_not_members(store):
    await store.increment_score("a", "1", 1)
    await store.increment_score("a", "2", 1)
    await store.increment_score("b", "1", 1)

    assert await store.delete_keys(["a", "b", "missing"]) == 2
    assert await store.delete_keys([]) == 0
    assert await store.list_keys_by_prefix("") == []


@pytest.mark.asyncio
async def test_database_errors_surface_as_store_unavailable():
    store = SqlRankingStore(session_scope=broken_session)

    with pytest.raises(StoreUnavailable):
        await store.increment_score("trending:daily", "1", 1)
    with pytest.raises(StoreUnavailable):
        await store.range_desc_with_scores("trending:daily", 0, -1)
    with pytest.raises(StoreUnavailable):
        await store.rename_key("trending:daily", "trending:daily:1")


class FailingKeyStore(SqlRankingStore):
    """Store whose upsert fails for one key, inside the batch transaction."""

    def __init__(self, failing_key):
        super().__init__()
        self.failing_key = failing_key

    async def _upsert(self, session, key, member, delta):
        if key == self.failing_key:
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        return await super()._upsert(session, key, member, delta)


@pytest.mark.asyncio
async def test_increment_scores_updates_every_key(store):
    await store.increment_score("trending:weekly", "7", 2)

    assert await store.increment_scores(["trending:daily", "trending:weekly"], "7", 1) == [1, 3]


@pytest.mark.asyncio
async def test_increment_scores_is_all_or_nothing(database):
    store = FailingKeyStore("trending:weekly")

    with pytest.raises(StoreUnavailable):
        await store.increment_scores(["trending:daily", "trending:weekly", "trending:monthly"], "7", 1)

    for key in ("trending:daily", "trending:weekly", "trending:monthly"):
        assert await store.range_desc_with_scores(key, 0, -1) == []
