"""
News Trending Service - Configuration
"""
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Paths
    BASE_DIR: Path = Path(__file__).parent
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).parent / "data")
    DATABASE_PATH: Path = Field(default_factory=lambda: Path(__file__).parent / "data" / "news.db")
    DATABASE_URL: Optional[str] = Field(default=None, description="Overrides DATABASE_PATH when set")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_DIR: Optional[Path] = Field(default=None, description="Enable file logging when set")

    # View recording
    VIEW_COOLDOWN_SECONDS: int = Field(default=3600, description="One counted view per viewer/article per cooldown")
    VIEW_SETTLE_DELAY_SECONDS: float = Field(default=2.0)
    VIEW_INCREMENT: float = Field(default=1.0)
    VIEW_MARKER_PURGE_HOURS: int = Field(default=1)

    # Archival
    ARCHIVE_RETENTION: int = Field(default=7, description="Archives kept per trending window")
    ARCHIVE_CRON_HOUR: int = Field(default=3)
    ARCHIVE_CRON_MINUTE: int = Field(default=0)
    ARCHIVE_TIMEZONE: str = Field(default="Europe/Istanbul")
    ARCHIVE_LEASE_SECONDS: int = Field(default=900)

    # Trending reads
    TRENDING_DEFAULT_LIMIT: int = Field(default=10)
    TRENDING_MAX_LIMIT: int = Field(default=100)
    TRENDING_CACHE_TTL_SECONDS: float = Field(default=30.0)

    # API
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)
    SESSION_COOKIE_NAME: str = Field(default="session_id")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def ensure_directories():
    """Ensure all required directories exist."""
    dirs = [settings.DATA_DIR]
    if settings.LOG_DIR:
        dirs.append(settings.LOG_DIR)
    for dir_path in dirs:
        dir_path.mkdir(parents=True, exist_ok=True)
