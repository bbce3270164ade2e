"""
Shared Enums

Application-wide enums used across multiple modules.
"""
from enum import Enum


class TrendingPeriod(str, Enum):
    """Trailing windows over which view scores accumulate."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ArticleStatus(str, Enum):
    """Publication state of a news article."""
    DRAFT = "draft"
    PUBLISHED = "published"


# Every counted view increments each of these windows
ACTIVE_PERIODS = (
    TrendingPeriod.DAILY,
    TrendingPeriod.WEEKLY,
    TrendingPeriod.MONTHLY,
    TrendingPeriod.YEARLY,
)

# Rotated by the nightly archive job, in this order
ARCHIVED_PERIODS = (
    TrendingPeriod.DAILY,
    TrendingPeriod.WEEKLY,
    TrendingPeriod.MONTHLY,
)

# Dict version for query parameter docs
TRENDING_PERIODS = {p.value: p.value for p in TrendingPeriod}
