from contextlib import asynccontextmanager
from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError

from database import init_engine, close_engine, create_tables, get_session
from database.models import Article
from repositories import ArticleRepository
from ranking import RankingWindows, SqlRankingStore


@pytest_asyncio.fixture
async def database(tmp_path):
    """Fresh SQLite database per test."""
    await close_engine()
    await init_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_tables()
    yield
    await close_engine()


@pytest.fixture
def store(database):
    return SqlRankingStore()


@pytest.fixture
def windows(store):
    return RankingWindows(store)


@asynccontextmanager
async def broken_session():
    """Session scope that fails like an unreachable database."""
    raise OperationalError("SELECT 1", {}, Exception("unable to open database file"))
    yield  # pragma: no cover


async def add_articles(*rows):
    """Insert articles given as (id, title) or (id, title, status)."""
    articles = []
    for row in rows:
        article_id, title = row[0], row[1]
        status = row[2] if len(row) > 2 else "published"
        articles.append(Article(
            id=article_id,
            title=title,
            slug=f"article-{article_id}",
            excerpt=f"About {title}",
            status=status,
            published_at=datetime(2024, 5, 1, 9, 30),
            view_count=0,
            meta={"image_url": f"/images/{article_id}.jpg"},
        ))

    async with get_session() as session:
        await ArticleRepository(session).add_all(articles)
