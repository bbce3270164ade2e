"""
View debounce ledgers.

A ledger remembers when a viewer's view of an article was last counted.
`LocalDebounceLedger` lives with one viewer context (like a browser's local
storage) and is only as trustworthy as that context. `SqlDebounceLedger`
keeps markers in the shared database so every process sees the same one.
"""
from abc import ABC, abstractmethod
from typing import AsyncContextManager, Callable, Dict, Optional, Tuple

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_session
from repositories import ViewMarkerRepository
from .errors import StoreUnavailable


class DebounceLedger(ABC):

    @abstractmethod
    async def last_viewed(self, viewer_id: str, article_id: int) -> Optional[float]:
        """Epoch seconds of the last counted view, or None."""

    @abstractmethod
    async def mark_viewed(self, viewer_id: str, article_id: int, at: float) -> None:
        """Record a counted view at `at` (epoch seconds)."""


class LocalDebounceLedger(DebounceLedger):
    """In-memory ledger owned by a single viewer context."""

    def __init__(self):
        self._markers: Dict[Tuple[str, int], float] = {}

    async def last_viewed(self, viewer_id: str, article_id: int) -> Optional[float]:
        return self._markers.get((viewer_id, int(article_id)))

    async def mark_viewed(self, viewer_id: str, article_id: int, at: float) -> None:
        self._markers[(viewer_id, int(article_id))] = at


class SqlDebounceLedger(DebounceLedger):
    """Ledger backed by the shared `view_markers` table."""

    def __init__(self, session_scope: Callable[[], AsyncContextManager[AsyncSession]] = get_session):
        self._session_scope = session_scope

    async def last_viewed(self, viewer_id: str, article_id: int) -> Optional[float]:
        try:
            async with self._session_scope() as session:
                return await ViewMarkerRepository(session).get_viewed_at(viewer_id, int(article_id))
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Reading view marker failed: {e}") from e

    async def mark_viewed(self, viewer_id: str, article_id: int, at: float) -> None:
        try:
            async with self._session_scope() as session:
                await ViewMarkerRepository(session).upsert(viewer_id, int(article_id), at)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Writing view marker failed: {e}") from e

    async def purge_expired(self, cutoff: float) -> int:
        """
        Delete markers last refreshed before `cutoff`.

        Returns:
            Number of markers removed
        """
        try:
            async with self._session_scope() as session:
                removed = await ViewMarkerRepository(session).delete_older_than(cutoff)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Purging view markers failed: {e}") from e

        logger.info(f"Purged {removed} expired view markers")
        return removed
