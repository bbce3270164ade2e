"""
Ranking Store

Sorted-set style storage: each key maps members to scores and can be read
back in descending score order. Live windows and their archives are both
plain keys (see ranking.keys).

The store is shared by every process of the site, so every mutation is
expressed as a single SQL statement or a single transaction; callers never
read-modify-write scores themselves.
"""
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncGenerator, Callable, List, Sequence, Tuple

from loguru import logger
from sqlalchemy import select, update, delete, func, distinct
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from database import get_session
from database.models import TrendingScore
from .errors import StoreUnavailable

ScoredMember = Tuple[str, float]


class RankingStore(ABC):
    """Capabilities the trending subsystem needs from a sorted-set store."""

    @abstractmethod
    async def increment_score(self, key: str, member: str, delta: float) -> float:
        """Add `delta` to `member` in `key`, creating it at `delta` if absent."""

    @abstractmethod
    async def increment_scores(self, keys: Sequence[str], member: str, delta: float) -> List[float]:
        """
        Add `delta` to `member` in every key, all or nothing.

        Returns:
            New scores, in the order of `keys`
        """

    @abstractmethod
    async def range_desc_with_scores(self, key: str, start: int, stop: int) -> List[ScoredMember]:
        """
        Members of `key` by descending score.

        `start`/`stop` are inclusive positions; negative values count from
        the end (-1 is the last member). Absent keys yield an empty list.
        """

    @abstractmethod
    async def rename_key(self, old: str, new: str) -> bool:
        """Rename `old` to `new`, replacing `new`. False if `old` is absent."""

    @abstractmethod
    async def list_keys_by_prefix(self, prefix: str) -> List[str]:
        """Names of all non-empty keys starting with `prefix`, unordered."""

    @abstractmethod
    async def delete_keys(self, keys: Sequence[str]) -> int:
        """Delete keys; returns how many of them existed."""


class SqlRankingStore(RankingStore):
    """
    Ranking store on the shared SQL database (`trending_scores` table).

    Ties in descending ranges are broken by member name, descending, the
    same way a sorted set's reverse range orders equal scores.
    """

    def __init__(self, session_scope: Callable[[], AsyncContextManager[AsyncSession]] = get_session):
        """
        Args:
            session_scope: Async context manager factory yielding a session
                that commits on success (defaults to database.get_session)
        """
        self._session_scope = session_scope

    @asynccontextmanager
    async def _call(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self._session_scope() as session:
                yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Ranking store {operation} failed: {e}")
            raise StoreUnavailable(f"Ranking store {operation} failed: {e}") from e

    async def increment_score(self, key: str, member: str, delta: float) -> float:
        async with self._call("increment") as session:
            return await self._upsert(session, key, member, delta)

    async def increment_scores(self, keys: Sequence[str], member: str, delta: float) -> List[float]:
        # One session is one transaction: a failure rolls back every key
        async with self._call("increment") as session:
            return [await self._upsert(session, key, member, delta) for key in keys]

    async def _upsert(self, session: AsyncSession, key: str, member: str, delta: float) -> float:
        stmt = insert(TrendingScore).values(key=key, member=member, score=delta)
        stmt = stmt.on_conflict_do_update(
            index_elements=[TrendingScore.key, TrendingScore.member],
            set_={"score": TrendingScore.score + stmt.excluded.score},
        )
        await session.execute(stmt)

        result = await session.execute(
            select(TrendingScore.score).where(
                TrendingScore.key == key,
                TrendingScore.member == member,
            )
        )
        return result.scalar_one()

    async def range_desc_with_scores(self, key: str, start: int, stop: int) -> List[ScoredMember]:
        async with self._call("range") as session:
            if start < 0 or stop < 0:
                total = (await session.execute(
                    select(func.count()).select_from(TrendingScore).where(TrendingScore.key == key)
                )).scalar_one()
                if start < 0:
                    start = max(total + start, 0)
                if stop < 0:
                    stop = total + stop

            if stop < start:
                return []

            stmt = (
                select(TrendingScore.member, TrendingScore.score)
                .where(TrendingScore.key == key)
                .order_by(TrendingScore.score.desc(), TrendingScore.member.desc())
                .offset(start)
                .limit(stop - start + 1)
            )
            result = await session.execute(stmt)
            return [(row.member, row.score) for row in result]

    async def rename_key(self, old: str, new: str) -> bool:
        if old == new:
            async with self._call("rename") as session:
                result = await session.execute(
                    select(func.count()).select_from(TrendingScore).where(TrendingScore.key == old)
                )
                return result.scalar_one() > 0

        async with self._call("rename") as session:
            # Clear the destination only when there is something to move into it
            source = aliased(TrendingScore)
            source_present = select(source.id).where(source.key == old).exists()
            await session.execute(
                delete(TrendingScore)
                .where(TrendingScore.key == new, source_present)
                .execution_options(synchronize_session=False)
            )

            result = await session.execute(
                update(TrendingScore)
                .where(TrendingScore.key == old)
                .values(key=new)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount > 0

    async def list_keys_by_prefix(self, prefix: str) -> List[str]:
        async with self._call("list") as session:
            result = await session.execute(
                select(distinct(TrendingScore.key)).where(
                    TrendingScore.key.startswith(prefix, autoescape=True)
                )
            )
            return list(result.scalars().all())

    async def delete_keys(self, keys: Sequence[str]) -> int:
        if not keys:
            return 0

        async with self._call("delete") as session:
            existing = await session.execute(
                select(distinct(TrendingScore.key)).where(TrendingScore.key.in_(list(keys)))
            )
            found = len(existing.scalars().all())

            await session.execute(
                delete(TrendingScore)
                .where(TrendingScore.key.in_(list(keys)))
                .execution_options(synchronize_session=False)
            )
            return found
