"""
API Routes - Trending endpoints for the news site

Endpoints organized by:
- Health Check
- Trending (ranked article lists per period)
- Views (record an article view)
- System (manual archive run)
"""
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from config import settings
from constants import TRENDING_PERIODS
from ranking import (
    InvalidArgument,
    RankingWindows,
    SqlRankingStore,
    TrendingArchiver,
    TrendingService,
)

router = APIRouter()

# Shared per process; built on first use
_windows: Optional[RankingWindows] = None
_service: Optional[TrendingService] = None
_archiver: Optional[TrendingArchiver] = None


def get_windows() -> RankingWindows:
    global _windows
    if _windows is None:
        _windows = RankingWindows(SqlRankingStore())
    return _windows


def get_trending_service() -> TrendingService:
    """FastAPI dependency returning the process-wide TrendingService."""
    global _service
    if _service is None:
        _service = TrendingService(get_windows())
    return _service


def get_archiver() -> TrendingArchiver:
    """FastAPI dependency returning the process-wide TrendingArchiver."""
    global _archiver
    if _archiver is None:
        _archiver = TrendingArchiver(get_windows())
    return _archiver


# ============================================================
# Health Check
# ============================================================
@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
    }


# ============================================================
# Trending
# ============================================================
@router.get("/news/trending")
async def get_trending_articles(
    period: str = Query(default="daily", description=f"One of {list(TRENDING_PERIODS)}"),
    limit: int = Query(default=settings.TRENDING_DEFAULT_LIMIT, ge=1, description="Capped at TRENDING_MAX_LIMIT"),
    service: TrendingService = Depends(get_trending_service),
):
    """
    Trending articles for a period, highest score first.

    Never fails because of the ranking store: a store outage degrades to the
    last cached list or an empty one.
    """
    try:
        result = await service.get_trending(period, limit)
    except InvalidArgument as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "data": [article.to_dict() for article in result.articles],
        "period": result.period,
        "source": result.source,
        "updated_at": datetime.now().isoformat(),
    }


# ============================================================
# Views
# ============================================================
@router.post("/news/{article_id}/view")
async def record_article_view(
    article_id: str,
    request: Request,
    service: TrendingService = Depends(get_trending_service),
):
    """
    Record a view of an article.

    The viewer is identified by the session cookie, issued here if missing.
    Responses always carry `success`; failures add `error`.
    """
    cookie_name = settings.SESSION_COOKIE_NAME
    session_id = request.cookies.get(cookie_name)
    new_session = not session_id
    if new_session:
        session_id = f"sess_{uuid.uuid4().hex}"

    result = await service.record_article_view(article_id, session_id)

    response = JSONResponse(result.to_dict(), status_code=result.status_code)
    if new_session:
        response.set_cookie(cookie_name, session_id, httponly=True, samesite="lax")
    return response


# ============================================================
# System
# ============================================================
@router.post("/trending/archive")
async def trigger_trending_archive(archiver: TrendingArchiver = Depends(get_archiver)):
    """Run the trending archive job now, outside its schedule."""
    last_run_at = await archiver.load_last_run_at()
    result = await archiver.run(last_run_at=last_run_at)
    return result.to_dict()
