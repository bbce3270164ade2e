"""
SQLAlchemy ORM Models

All models share the declarative Base so `Base.metadata` covers every table.
"""
from .base import Base, TimestampMixin
from .articles import Article
from .trending import TrendingScore, ViewMarker, JobLease

__all__ = [
    "Base",
    "TimestampMixin",
    "Article",
    "TrendingScore",
    "ViewMarker",
    "JobLease",
]
