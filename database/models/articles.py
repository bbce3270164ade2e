"""
Article Models

The slice of the news table the trending subsystem reads and updates.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, DateTime, Text, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class Article(Base, TimestampMixin):
    """
    Published news article.

    Only the columns needed to render a trending card are mapped here:
    title, slug, excerpt, publication data and the persistent view counter.
    `meta` is free-form JSON and may carry an `image_url`.
    """
    __tablename__ = "news"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    excerpt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")  # 'draft', 'published'
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    meta: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        Index("idx_news_status_published", "status", "published_at"),
    )

    @property
    def image_url(self) -> Optional[str]:
        """Image URL stored in meta, if any."""
        if isinstance(self.meta, dict):
            value = self.meta.get("image_url")
            return value if isinstance(value, str) else None
        return None
