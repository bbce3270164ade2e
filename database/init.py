"""
Database Initialization

Schema upgrades via Alembic. Tests and local runs can use create_tables() instead.
"""
from loguru import logger


def run_migrations() -> None:
    """
    Run pending Alembic migrations.

    This is a convenience wrapper around Alembic upgrade command.
    """
    from alembic.config import Config
    from alembic import command
    from config import settings

    alembic_cfg = Config(str(settings.BASE_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(settings.BASE_DIR / "migrations"))
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")
