"""
FastAPI Application - News Trending Service API
"""
import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings, ensure_directories
from database import init_engine, close_engine
from database.init import run_migrations
from utils import logger, init_logging
from .routes import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    init_logging(app_name="api")
    ensure_directories()

    # Alembic drives its own event loop, so keep it off this one
    try:
        await asyncio.to_thread(run_migrations)
    except Exception as e:
        logger.error(f"Migration failed: {e}")

    logger.info("Starting API server")
    await init_engine()
    yield
    logger.info("Shutting down API server")
    await close_engine()


app = FastAPI(
    title="News Trending Service",
    description="Trending articles and view recording for the news site",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "News Trending Service",
        "version": "1.0.0",
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host=settings.API_HOST, port=settings.API_PORT)
