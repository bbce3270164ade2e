"""
SQLAlchemy Base Model and Mixins

Provides base classes and common mixins for all models.
"""
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import DateTime, func, inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Provides common utility methods shared by news and trending tables.
    """

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}

    def __repr__(self) -> str:
        """String representation using the primary key columns."""
        class_name = self.__class__.__name__
        identity = inspect(self).identity
        return f"<{class_name}(pk={identity})>"


class TimestampMixin:
    """
    Mixin that adds created_at and updated_at timestamps.

    Usage:
        class Article(Base, TimestampMixin):
            ...
    """
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=func.now(),
        nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=func.now(),
        onupdate=func.now(),
        nullable=True
    )
