"""
View Marker Repository

Shared per-viewer, per-article markers of the last counted view.
"""
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.dialects.sqlite import insert

from database.models import ViewMarker
from .base import BaseRepository


class ViewMarkerRepository(BaseRepository[ViewMarker]):
    """Repository for view debounce markers."""

    model = ViewMarker

    async def get_viewed_at(self, viewer_id: str, article_id: int) -> Optional[float]:
        """Return the last counted view time (epoch seconds), if any."""
        marker = await self.get((viewer_id, article_id))
        return marker.viewed_at if marker else None

    async def upsert(self, viewer_id: str, article_id: int, viewed_at: float) -> None:
        """Insert or refresh the marker for a viewer/article pair."""
        stmt = insert(ViewMarker).values(
            viewer_id=viewer_id,
            article_id=article_id,
            viewed_at=viewed_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[ViewMarker.viewer_id, ViewMarker.article_id],
            set_={"viewed_at": stmt.excluded.viewed_at},
        )
        await self.session.execute(stmt)

    async def delete_older_than(self, cutoff: float) -> int:
        """
        Delete markers whose last view is before `cutoff`.

        Returns:
            Number of markers deleted
        """
        stmt = delete(ViewMarker).where(ViewMarker.viewed_at < cutoff)
        result = await self.session.execute(stmt)
        return result.rowcount
