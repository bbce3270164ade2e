"""
Ranking Windows

Per-period view of the ranking store: increment an article, read the top N,
rotate a live window into a timestamped archive and cap the archive count.
"""
import time
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from constants import TrendingPeriod
from .identifiers import ArticleId
from .keys import window_key, archive_key, archive_prefix, archive_timestamp
from .store import RankingStore

ArticleScore = Tuple[ArticleId, float]


class RankingWindows:
    """Window-level operations over a RankingStore."""

    def __init__(self, store: RankingStore):
        self.store = store

    async def increment(self, period: TrendingPeriod, article_id: ArticleId, delta: float = 1.0) -> float:
        """
        Add `delta` to an article's score in one window.

        Returns:
            The article's new score in that window
        """
        return await self.store.increment_score(window_key(period), article_id.member, delta)

    async def increment_all(
        self,
        periods: Iterable[TrendingPeriod],
        article_id: ArticleId,
        delta: float = 1.0,
    ) -> List[float]:
        """
        Add `delta` to an article in several windows as one write.

        Either every window is incremented or none is.

        Returns:
            New scores, in the order of `periods`
        """
        keys = [window_key(period) for period in periods]
        if not keys:
            return []
        return await self.store.increment_scores(keys, article_id.member, delta)

    async def top_n(self, period: TrendingPeriod, n: int) -> List[ArticleScore]:
        """
        Up to `n` (article_id, score) pairs, highest score first.

        An absent window (e.g. right after rotation) yields an empty list.
        Members that are not valid article IDs are skipped.
        """
        if n <= 0:
            return []

        rows = await self.store.range_desc_with_scores(window_key(period), 0, n - 1)
        return _to_article_scores(rows)

    async def read_all(self, period: TrendingPeriod) -> List[ArticleScore]:
        """Full contents of a window, highest score first."""
        rows = await self.store.range_desc_with_scores(window_key(period), 0, -1)
        return _to_article_scores(rows)

    async def rotate(self, period: TrendingPeriod, now: Optional[float] = None) -> Optional[str]:
        """
        Move the live window to an archive key stamped with `now`.

        The live window is left absent; the next increment starts it fresh.

        Args:
            period: Window to rotate
            now: Epoch seconds used for the archive name (defaults to now)

        An archive already stamped with the same millisecond is never
        replaced; the new archive takes the next free millisecond.

        Returns:
            Archive key, or None if the live window did not exist
        """
        timestamp_ms = int((time.time() if now is None else now) * 1000)
        existing = set(await self.store.list_keys_by_prefix(archive_prefix(period)))
        target = archive_key(period, timestamp_ms)
        while target in existing:
            timestamp_ms += 1
            target = archive_key(period, timestamp_ms)
        renamed = await self.store.rename_key(window_key(period), target)
        return target if renamed else None

    async def list_archives(self, period: TrendingPeriod) -> List[str]:
        """Archive keys of a window, oldest first by embedded timestamp."""
        keys = await self.store.list_keys_by_prefix(archive_prefix(period))
        return sorted(keys, key=lambda k: (archive_timestamp(k), k))

    async def prune_archives(self, period: TrendingPeriod, keep: int) -> int:
        """
        Delete the oldest archives beyond `keep`, in one batch.

        Returns:
            Number of archives deleted
        """
        archives = await self.list_archives(period)
        excess = archives[:max(0, len(archives) - keep)]
        if not excess:
            return 0
        return await self.store.delete_keys(excess)


def _to_article_scores(rows) -> List[ArticleScore]:
    scores = []
    for member, score in rows:
        try:
            scores.append((ArticleId.parse(member), float(score)))
        except ValueError:
            logger.warning(f"Skipping non-article member in ranking: {member!r}")
    return scores
