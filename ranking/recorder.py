"""
View Recorder

Turns view signals into at most one score increment per viewer, per article,
per cooldown.

Flow for a signal:
    1. parse the article ID (InvalidArgument, nothing else happens)
    2. debounce: a counted view younger than the cooldown makes this a no-op
    3. arm a deferred commit after the settle delay; closing the viewer
       context before it fires cancels it; once writing, it completes
    4. commit: increment every active window in one write, then the debounce
       marker, then invalidate cached trending lists

The marker is written only after the increments succeed, so a failed commit
can be retried by the next signal.
"""
import asyncio
import time
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Set

from loguru import logger

from config import settings
from constants import ACTIVE_PERIODS, TrendingPeriod
from .cache import TrendingCache
from .debounce import DebounceLedger, LocalDebounceLedger
from .errors import StoreUnavailable
from .identifiers import ArticleId
from .windows import RankingWindows


class ViewOutcome(str, Enum):
    """What record_view did with a signal."""
    SCHEDULED = "scheduled"
    DEBOUNCED = "debounced"
    ALREADY_PENDING = "already_pending"
    DROPPED = "dropped"


class ViewerContext:
    """
    One viewer's session: its debounce ledger and its pending commits.

    At most one commit is pending per article. Use as an async context
    manager, or call close(), to tear it down; commits still waiting out the
    settle delay are cancelled, commits already writing run to completion.
    """

    def __init__(self, viewer_id: str, ledger: Optional[DebounceLedger] = None):
        self.viewer_id = viewer_id
        self.ledger = ledger or LocalDebounceLedger()
        self.pending: Dict[int, asyncio.Task] = {}
        self.committing: Set[int] = set()
        self.closed = False

    def close(self) -> int:
        """
        Cancel every commit still in its settle delay.

        Returns:
            Number of commits cancelled
        """
        self.closed = True
        cancelled = 0
        for article_id, task in list(self.pending.items()):
            if task.done():
                del self.pending[article_id]
            elif article_id not in self.committing:
                task.cancel()
                cancelled += 1
                del self.pending[article_id]
        if cancelled:
            logger.debug(f"Viewer {self.viewer_id}: cancelled {cancelled} pending view(s)")
        return cancelled

    async def __aenter__(self) -> "ViewerContext":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class ViewRecorder:
    """Debounced, deferred view recording into the ranking windows."""

    def __init__(
        self,
        windows: RankingWindows,
        cache: Optional[TrendingCache] = None,
        periods: Iterable[TrendingPeriod] = ACTIVE_PERIODS,
        settle_delay: Optional[float] = None,
        cooldown: Optional[float] = None,
        increment: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.windows = windows
        self.cache = cache
        self.periods = tuple(periods)
        self.settle_delay = settings.VIEW_SETTLE_DELAY_SECONDS if settle_delay is None else settle_delay
        self.cooldown = settings.VIEW_COOLDOWN_SECONDS if cooldown is None else cooldown
        self.increment = settings.VIEW_INCREMENT if increment is None else increment
        self._clock = clock

    async def is_debounced(self, article_id: ArticleId, viewer: ViewerContext) -> bool:
        """True if this viewer's last counted view of the article is within the cooldown."""
        last = await viewer.ledger.last_viewed(viewer.viewer_id, article_id)
        return last is not None and self._clock() - last < self.cooldown

    async def record_view(self, article_id: Any, viewer: ViewerContext) -> ViewOutcome:
        """
        Handle a view signal.

        Args:
            article_id: Raw identifier from the caller; parsed strictly
            viewer: The viewing context that owns the deferred commit

        Returns:
            ViewOutcome. When SCHEDULED, the commit task is in
            `viewer.pending[article_id]` and may be awaited.

        Raises:
            InvalidArgument: article_id is not a positive integer
        """
        article_id = ArticleId.parse(article_id)

        if await self.is_debounced(article_id, viewer):
            logger.debug(f"View of {article_id} by {viewer.viewer_id} already counted recently")
            return ViewOutcome.DEBOUNCED

        existing = viewer.pending.get(article_id)
        if existing is not None and not existing.done():
            return ViewOutcome.ALREADY_PENDING

        if viewer.closed:
            logger.debug(f"Viewer {viewer.viewer_id} is closed; view of {article_id} dropped")
            return ViewOutcome.DROPPED

        task = asyncio.create_task(self._commit_after_delay(article_id, viewer))
        task.add_done_callback(lambda t: self._on_commit_done(t, article_id, viewer))
        viewer.pending[article_id] = task
        return ViewOutcome.SCHEDULED

    async def _commit_after_delay(self, article_id: ArticleId, viewer: ViewerContext) -> float:
        await asyncio.sleep(self.settle_delay)
        # Past the settle delay the view is committed even if the viewer closes
        viewer.committing.add(article_id)
        return await self.commit_view(article_id, viewer)

    def _on_commit_done(self, task: asyncio.Task, article_id: ArticleId, viewer: ViewerContext) -> None:
        if viewer.pending.get(article_id) is task:
            del viewer.pending[article_id]
            viewer.committing.discard(article_id)

        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            # Silent for the end user; the next signal retries
            logger.warning(f"View of {article_id} by {viewer.viewer_id} not recorded: {error}")

    async def commit_view(self, article_id: ArticleId, viewer: ViewerContext) -> float:
        """
        Increment every active window, then mark the view as counted.

        All windows are written in one store call, so a failed commit leaves
        every window as it was.

        Returns:
            The article's new score in the first active window

        Raises:
            StoreUnavailable: the increment failed; the debounce marker is untouched
        """
        article_id = ArticleId.parse(article_id)

        scores = await self.windows.increment_all(self.periods, article_id, self.increment)

        try:
            await viewer.ledger.mark_viewed(viewer.viewer_id, article_id, self._clock())
        except StoreUnavailable:
            # The view is already counted; a missing marker only risks a recount
            logger.exception(f"Failed to write view marker for {article_id}")

        if self.cache is not None:
            self.cache.invalidate()

        logger.debug(f"Recorded view of {article_id} by {viewer.viewer_id}")
        return scores[0] if scores else 0.0
