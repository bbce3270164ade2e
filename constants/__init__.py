"""
Constants package for the News Trending Service.

Contains shared enums and period groupings.
"""

from .enums import (
    TrendingPeriod,
    ArticleStatus,
    ACTIVE_PERIODS,
    ARCHIVED_PERIODS,
    TRENDING_PERIODS,
)

__all__ = [
    "TrendingPeriod",
    "ArticleStatus",
    "ACTIVE_PERIODS",
    "ARCHIVED_PERIODS",
    "TRENDING_PERIODS",
]
