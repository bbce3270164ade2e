"""
Trending / view-ranking subsystem.

    store.py       sorted-set style ranking store (SQL backed)
    windows.py     per-period increment, top N, rotate, prune
    recorder.py    debounced, deferred view recording
    debounce.py    local and shared debounce ledgers
    archiver.py    nightly rotation with retention
    service.py     calls used by the web layer
"""
from .errors import TrendingError, InvalidArgument, StoreUnavailable, PartialRotationFailure
from .identifiers import ArticleId, parse_period
from .store import RankingStore, SqlRankingStore
from .windows import RankingWindows
from .cache import TrendingCache
from .debounce import DebounceLedger, LocalDebounceLedger, SqlDebounceLedger
from .recorder import ViewRecorder, ViewerContext, ViewOutcome
from .archiver import TrendingArchiver, ArchiveRunResult, PeriodArchiveResult
from .service import TrendingService, ArticleSummary, TrendingResult, ViewRecordResult

__all__ = [
    "TrendingError",
    "InvalidArgument",
    "StoreUnavailable",
    "PartialRotationFailure",
    "ArticleId",
    "parse_period",
    "RankingStore",
    "SqlRankingStore",
    "RankingWindows",
    "TrendingCache",
    "DebounceLedger",
    "LocalDebounceLedger",
    "SqlDebounceLedger",
    "ViewRecorder",
    "ViewerContext",
    "ViewOutcome",
    "TrendingArchiver",
    "ArchiveRunResult",
    "PeriodArchiveResult",
    "TrendingService",
    "ArticleSummary",
    "TrendingResult",
    "ViewRecordResult",
]
