"""
Key naming for ranking windows and their archives.

    trending:<period>             live window
    trending:<period>:<epoch_ms>  archive snapshot
"""
from constants import TrendingPeriod

KEY_PREFIX = "trending"


def window_key(period: TrendingPeriod) -> str:
    return f"{KEY_PREFIX}:{TrendingPeriod(period).value}"


def archive_prefix(period: TrendingPeriod) -> str:
    return f"{window_key(period)}:"


def archive_key(period: TrendingPeriod, timestamp_ms: int) -> str:
    return f"{archive_prefix(period)}{timestamp_ms}"


def archive_timestamp(key: str) -> int:
    """Timestamp embedded in an archive key; unparseable suffixes sort first."""
    suffix = key.rsplit(":", 1)[-1]
    try:
        return int(suffix)
    except ValueError:
        return 0
