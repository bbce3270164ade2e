"""
Database Module - News Trending Service

Structure:
    database/
    ├── __init__.py      # This file - public API
    ├── session.py       # SQLAlchemy async session management
    ├── init.py          # Database initialization utilities
    └── models/          # SQLAlchemy ORM models
        ├── base.py
        ├── articles.py
        └── trending.py

Usage:
    from database import get_session
    from database.models import Article, TrendingScore

    async with get_session() as session:
        result = await session.execute(select(Article))
        articles = result.scalars().all()
"""

# SQLAlchemy Models
from .models import (
    Base,
    TimestampMixin,
    Article,
    TrendingScore,
    ViewMarker,
    JobLease,
)

# Session Management
from .session import (
    init_engine,
    close_engine,
    create_tables,
    get_session,
    get_database_url,
)

# Initialization utilities
from .init import run_migrations

__all__ = [
    # Models
    "Base",
    "TimestampMixin",
    "Article",
    "TrendingScore",
    "ViewMarker",
    "JobLease",
    # Session
    "init_engine",
    "close_engine",
    "create_tables",
    "get_session",
    "get_database_url",
    # Init
    "run_migrations",
]
